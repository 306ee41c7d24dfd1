"""
Stakeholder Mapping & Reporting API
KPI catalogue models.

Models:
    - SubCluster: organisational grouping of KPIs and stakeholders
    - KpiCategory: KPI grouping within a sub-cluster
    - Kpi: a measurable indicator owned by a sub-cluster

Architecture chain: SubCluster → KpiCategory → Kpi
"""

from datetime import datetime, timezone

from stakemap.models import db


class SubCluster(db.Model):
    __tablename__ = "sub_clusters"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    kpis = db.relationship("Kpi", back_populates="sub_cluster", lazy="dynamic")

    def to_summary(self) -> dict:
        """Id + name only, as embedded in action plans."""
        return {"id": self.id, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<SubCluster id={self.id} name={self.name!r}>"


class KpiCategory(db.Model):
    __tablename__ = "kpi_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    sub_cluster_id = db.Column(
        db.Integer,
        db.ForeignKey("sub_clusters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "subClusterId": self.sub_cluster_id}

    def __repr__(self) -> str:
        return f"<KpiCategory id={self.id} name={self.name!r}>"


class Kpi(db.Model):
    """A key performance indicator. Planned per action plan through KpiPlan."""

    __tablename__ = "kpis"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(50), nullable=True, comment="e.g. %, count, USD")
    sub_cluster_id = db.Column(
        db.Integer,
        db.ForeignKey("sub_clusters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kpi_category_id = db.Column(
        db.Integer,
        db.ForeignKey("kpi_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    stakeholder_category_id = db.Column(
        db.Integer,
        db.ForeignKey("stakeholder_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    target_value = db.Column(db.Float, nullable=True)
    current_value = db.Column(db.Float, nullable=True)

    sub_cluster = db.relationship("SubCluster", back_populates="kpis")
    kpi_category = db.relationship("KpiCategory")
    stakeholder_category = db.relationship("StakeholderCategory")

    def to_dict(self, include_details: bool = False) -> dict:
        result = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "subClusterId": self.sub_cluster_id,
            "kpiCategoryId": self.kpi_category_id,
            "stakeholderCategoryId": self.stakeholder_category_id,
            "targetValue": self.target_value,
            "currentValue": self.current_value,
        }
        if include_details:
            result["subCluster"] = self.sub_cluster.to_summary() if self.sub_cluster else None
            result["kpiCategory"] = self.kpi_category.to_dict() if self.kpi_category else None
            result["stakeholderCategory"] = (
                self.stakeholder_category.to_dict() if self.stakeholder_category else None
            )
        return result

    def __repr__(self) -> str:
        return f"<Kpi id={self.id} name={self.name!r}>"
