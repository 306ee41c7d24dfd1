"""
Stakeholder Mapping & Reporting API
Action plan domain models.

Models:
    - ActionPlan: one sub-cluster's plan for a financial year at one geographic scope
    - KpiPlan: planned target value for one KPI inside one ActionPlan

Value types:
    - PlanLevel: country | province | district
    - PlanScope: a PlanLevel together with the single geo id it refers to

Business rule: no two action plans sharing year + level + geo id may plan the
same KPI. Each KpiPlan carries a copy of its parent's scope so the rule is a
plain composite unique constraint (``uq_kpi_plan_scope``).
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone

from stakemap.core.exceptions import ValidationError
from stakemap.models import db
from stakemap.utils.helpers import optional_int


class PlanLevel(str, enum.Enum):
    COUNTRY = "country"
    PROVINCE = "province"
    DISTRICT = "district"

    @property
    def geo_column(self) -> str:
        """ActionPlan column holding the id for this level."""
        return f"{self.value}_id"

    @property
    def payload_key(self) -> str:
        """JSON key holding the id for this level."""
        return f"{self.value}Id"


PLAN_LEVELS = {level.value for level in PlanLevel}


@dataclass(frozen=True)
class PlanScope:
    """Geographic scope of an action plan: exactly one level, exactly one id."""

    level: PlanLevel
    geo_id: int

    @classmethod
    def country(cls, geo_id: int) -> "PlanScope":
        return cls(PlanLevel.COUNTRY, geo_id)

    @classmethod
    def province(cls, geo_id: int) -> "PlanScope":
        return cls(PlanLevel.PROVINCE, geo_id)

    @classmethod
    def district(cls, geo_id: int) -> "PlanScope":
        return cls(PlanLevel.DISTRICT, geo_id)

    @classmethod
    def from_payload(cls, data: dict) -> "PlanScope":
        """Build a scope from ``planLevel`` and its matching ``<level>Id`` key.

        Ids for the other two levels are ignored.

        Raises:
            ValidationError: unknown level, or the matching id is missing/invalid.
        """
        raw_level = data.get("planLevel")
        try:
            level = PlanLevel(raw_level)
        except ValueError:
            raise ValidationError(
                f"planLevel must be one of: {', '.join(sorted(PLAN_LEVELS))}",
                details={"planLevel": raw_level},
            ) from None

        raw_id = data.get(level.payload_key)
        geo_id = optional_int(raw_id, level.payload_key)
        if geo_id is None:
            raise ValidationError(
                f"{level.payload_key} is required when planLevel is '{level.value}'",
                details={level.payload_key: "missing"},
            )
        return cls(level, geo_id)

    def geo_columns(self) -> dict:
        """Values for the three ActionPlan geo columns; only one is non-null."""
        columns = {level.geo_column: None for level in PlanLevel}
        columns[self.level.geo_column] = self.geo_id
        return columns


def _utcnow():
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
#  ACTION PLAN
# ═══════════════════════════════════════════════════════════════════════════


class ActionPlan(db.Model):
    """
    Planning record for a financial year, a sub-cluster and one geographic scope.

    Owns its KpiPlans exclusively: they are created with the plan and deleted
    with it, inside one transaction.
    """

    __tablename__ = "action_plans"
    __table_args__ = (
        db.CheckConstraint(
            "plan_level IN ('country', 'province', 'district')", name="ck_action_plan_level",
        ),
        db.Index("ix_action_plan_year_scope", "year_id", "plan_level"),
    )

    id = db.Column(db.Integer, primary_key=True)
    year_id = db.Column(
        db.Integer,
        db.ForeignKey("financial_years.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    stakeholder_subcluster_id = db.Column(
        db.Integer,
        db.ForeignKey("sub_clusters.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    stakeholder_id = db.Column(
        db.Integer,
        db.ForeignKey("stakeholders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    plan_level = db.Column(db.String(20), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=True)
    province_id = db.Column(db.Integer, db.ForeignKey("provinces.id"), nullable=True)
    district_id = db.Column(db.Integer, db.ForeignKey("districts.id"), nullable=True)

    document = db.Column(db.String(500), nullable=True, comment="Stored document reference")
    comment = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # ── Relationships ──
    kpi_plans = db.relationship("KpiPlan", back_populates="action_plan", order_by="KpiPlan.id")
    financial_year = db.relationship("FinancialYear")
    stakeholder = db.relationship("Stakeholder")
    stakeholder_subcluster = db.relationship("SubCluster")

    @property
    def scope(self) -> PlanScope:
        level = PlanLevel(self.plan_level)
        return PlanScope(level, getattr(self, level.geo_column))

    def apply_scope(self, scope: PlanScope) -> None:
        self.plan_level = scope.level.value
        for column, value in scope.geo_columns().items():
            setattr(self, column, value)

    def to_dict(self, include_details: bool = False, kpi_plans=None) -> dict:
        """Serialize for API responses.

        ``kpi_plans`` overrides the embedded children (used by search to
        narrow them to a single KPI).
        """
        result = {
            "id": self.id,
            "yearId": self.year_id,
            "stakeholderSubclusterId": self.stakeholder_subcluster_id,
            "stakeholderId": self.stakeholder_id,
            "planLevel": self.plan_level,
            "countryId": self.country_id,
            "provinceId": self.province_id,
            "districtId": self.district_id,
            "document": self.document,
            "comment": self.comment,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_details:
            children = self.kpi_plans if kpi_plans is None else kpi_plans
            result["kpiPlans"] = [kp.to_dict(include_kpi=True) for kp in children]
            result["financialYear"] = self.financial_year.to_dict() if self.financial_year else None
            result["stakeholder"] = self.stakeholder.to_dict() if self.stakeholder else None
            result["stakeholderSubcluster"] = (
                self.stakeholder_subcluster.to_summary() if self.stakeholder_subcluster else None
            )
        return result

    def __repr__(self) -> str:
        return f"<ActionPlan id={self.id} year={self.year_id} {self.plan_level}>"


# ═══════════════════════════════════════════════════════════════════════════
#  KPI PLAN
# ═══════════════════════════════════════════════════════════════════════════


class KpiPlan(db.Model):
    """Planned value for one KPI within one ActionPlan."""

    __tablename__ = "kpi_plans"
    __table_args__ = (
        db.UniqueConstraint(
            "kpi_id", "year_id", "plan_level", "geo_id", name="uq_kpi_plan_scope",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    action_plan_id = db.Column(
        db.Integer,
        db.ForeignKey("action_plans.id"),
        nullable=False,
        index=True,
    )
    kpi_id = db.Column(
        db.Integer,
        db.ForeignKey("kpis.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    planned_value = db.Column(db.Float, nullable=False)

    # Copy of the parent's scope (kept in step by the service layer)
    year_id = db.Column(db.Integer, nullable=False)
    plan_level = db.Column(db.String(20), nullable=False)
    geo_id = db.Column(db.Integer, nullable=False)

    action_plan = db.relationship("ActionPlan", back_populates="kpi_plans")
    kpi = db.relationship("Kpi")

    def stamp_scope(self, year_id: int, scope: PlanScope) -> None:
        self.year_id = year_id
        self.plan_level = scope.level.value
        self.geo_id = scope.geo_id

    def to_dict(self, include_kpi: bool = False) -> dict:
        result = {
            "id": self.id,
            "actionPlanId": self.action_plan_id,
            "kpiId": self.kpi_id,
            "plannedValue": self.planned_value,
        }
        if include_kpi:
            result["kpi"] = self.kpi.to_dict() if self.kpi else None
        return result

    def __repr__(self) -> str:
        return f"<KpiPlan id={self.id} plan={self.action_plan_id} kpi={self.kpi_id}>"
