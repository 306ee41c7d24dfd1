"""
Stakeholder Mapping & Reporting API
Stakeholder domain models.

Models:
    - StakeholderCategory: e.g. NGO, government, private sector
    - Stakeholder: an implementing organisation
    - StakeholderDistrict: districts a stakeholder operates in (N:M link)
    - StakeholderSubCluster: sub-clusters a stakeholder belongs to (N:M link)
"""

from datetime import datetime, timezone

from stakemap.models import db

IMPLEMENTATION_LEVELS = {"country", "province", "district"}


class StakeholderCategory(db.Model):
    __tablename__ = "stakeholder_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}

    def __repr__(self) -> str:
        return f"<StakeholderCategory id={self.id} name={self.name!r}>"


class Stakeholder(db.Model):
    __tablename__ = "stakeholders"

    id = db.Column(db.Integer, primary_key=True)
    organization_name = db.Column(db.String(300), nullable=False)
    stakeholder_category_id = db.Column(
        db.Integer,
        db.ForeignKey("stakeholder_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    implementation_level = db.Column(db.String(20), nullable=False, comment="country | province | district")
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    stakeholder_category = db.relationship("StakeholderCategory")
    districts = db.relationship(
        "StakeholderDistrict", back_populates="stakeholder",
        cascade="all, delete-orphan", order_by="StakeholderDistrict.id",
    )
    sub_clusters = db.relationship(
        "StakeholderSubCluster", back_populates="stakeholder",
        cascade="all, delete-orphan", order_by="StakeholderSubCluster.id",
    )

    def to_dict(self, include_details: bool = False) -> dict:
        result = {
            "id": self.id,
            "organizationName": self.organization_name,
            "stakeholderCategoryId": self.stakeholder_category_id,
            "implementationLevel": self.implementation_level,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_details:
            result["stakeholderCategory"] = (
                self.stakeholder_category.to_dict() if self.stakeholder_category else None
            )
            result["stakeholderDistricts"] = [
                {"id": link.id, "districtId": link.district_id,
                 "district": link.district.to_dict(include_province=True)}
                for link in self.districts
            ]
            result["stakeholderSubClusters"] = [
                {"id": link.id, "subClusterId": link.sub_cluster_id,
                 "subCluster": link.sub_cluster.to_dict()}
                for link in self.sub_clusters
            ]
        return result

    def __repr__(self) -> str:
        return f"<Stakeholder id={self.id} name={self.organization_name!r}>"


class StakeholderDistrict(db.Model):
    __tablename__ = "stakeholder_districts"
    __table_args__ = (
        db.UniqueConstraint("stakeholder_id", "district_id", name="uq_stakeholder_district"),
    )

    id = db.Column(db.Integer, primary_key=True)
    stakeholder_id = db.Column(
        db.Integer,
        db.ForeignKey("stakeholders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    district_id = db.Column(
        db.Integer,
        db.ForeignKey("districts.id", ondelete="CASCADE"),
        nullable=False,
    )

    stakeholder = db.relationship("Stakeholder", back_populates="districts")
    district = db.relationship("District")


class StakeholderSubCluster(db.Model):
    __tablename__ = "stakeholder_sub_clusters"
    __table_args__ = (
        db.UniqueConstraint("stakeholder_id", "sub_cluster_id", name="uq_stakeholder_sub_cluster"),
    )

    id = db.Column(db.Integer, primary_key=True)
    stakeholder_id = db.Column(
        db.Integer,
        db.ForeignKey("stakeholders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sub_cluster_id = db.Column(
        db.Integer,
        db.ForeignKey("sub_clusters.id", ondelete="CASCADE"),
        nullable=False,
    )

    stakeholder = db.relationship("Stakeholder", back_populates="sub_clusters")
    sub_cluster = db.relationship("SubCluster")
