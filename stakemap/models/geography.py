"""
Stakeholder Mapping & Reporting API
Administrative divisions.

Models:
    - Country
    - Province: belongs to a Country
    - District: belongs to a Province

Action plans are scoped to exactly one of these levels.
"""

from stakemap.models import db


class Country(db.Model):
    __tablename__ = "countries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)

    provinces = db.relationship("Province", back_populates="country", order_by="Province.name")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    def __repr__(self) -> str:
        return f"<Country id={self.id} name={self.name!r}>"


class Province(db.Model):
    __tablename__ = "provinces"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    country_id = db.Column(
        db.Integer,
        db.ForeignKey("countries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    country = db.relationship("Country", back_populates="provinces")
    districts = db.relationship("District", back_populates="province", order_by="District.name")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "countryId": self.country_id}

    def __repr__(self) -> str:
        return f"<Province id={self.id} name={self.name!r}>"


class District(db.Model):
    __tablename__ = "districts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    province_id = db.Column(
        db.Integer,
        db.ForeignKey("provinces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    province = db.relationship("Province", back_populates="districts")

    def to_dict(self, include_province: bool = False) -> dict:
        result = {"id": self.id, "name": self.name, "provinceId": self.province_id}
        if include_province:
            result["province"] = self.province.to_dict() if self.province else None
        return result

    def __repr__(self) -> str:
        return f"<District id={self.id} name={self.name!r}>"
