"""
Stakeholder Mapping & Reporting API
Option set models.

Models:
    - OptionSet: a named list of choices used by dashboard forms (e.g. Gender)
    - Option: one choice within an OptionSet (e.g. Female)
"""

from stakemap.models import db


class OptionSet(db.Model):
    __tablename__ = "option_sets"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    options = db.relationship(
        "Option", back_populates="option_set",
        cascade="all, delete-orphan", order_by="Option.name",
    )

    def to_dict(self, include_options: bool = False) -> dict:
        result = {"id": self.id, "name": self.name, "description": self.description}
        if include_options:
            result["options"] = [o.to_dict() for o in self.options]
        return result

    def __repr__(self) -> str:
        return f"<OptionSet id={self.id} name={self.name!r}>"


class Option(db.Model):
    __tablename__ = "options"

    id = db.Column(db.Integer, primary_key=True)
    option_set_id = db.Column(
        db.Integer,
        db.ForeignKey("option_sets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)

    option_set = db.relationship("OptionSet", back_populates="options")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "optionSetId": self.option_set_id}
