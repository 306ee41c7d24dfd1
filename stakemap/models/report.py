"""
Stakeholder Mapping & Reporting API
Quarterly progress report model.

A Report records the actual value achieved against one KpiPlan of an
ActionPlan for one Quarter of the plan's financial year.
"""

from datetime import datetime, timezone

from stakemap.models import db


class Report(db.Model):
    __tablename__ = "reports"
    __table_args__ = (
        db.Index("ix_report_plan_quarter", "action_plan_id", "quarter_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    action_plan_id = db.Column(
        db.Integer,
        db.ForeignKey("action_plans.id"),
        nullable=False,
        index=True,
    )
    year_id = db.Column(db.Integer, db.ForeignKey("financial_years.id"), nullable=False)
    kpi_plan_id = db.Column(db.Integer, db.ForeignKey("kpi_plans.id"), nullable=False)
    quarter_id = db.Column(db.Integer, db.ForeignKey("quarters.id"), nullable=False)
    actual_value = db.Column(db.Float, nullable=False)
    progress_summary = db.Column(db.Text, nullable=True)
    report_document = db.Column(db.String(500), nullable=True, comment="Stored document reference")
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    action_plan = db.relationship("ActionPlan", backref=db.backref("reports", order_by="Report.id"))
    kpi_plan = db.relationship("KpiPlan")
    quarter = db.relationship("Quarter")

    def to_dict(self, include_plan: bool = False) -> dict:
        result = {
            "id": self.id,
            "actionPlanId": self.action_plan_id,
            "yearId": self.year_id,
            "kpiPlanId": self.kpi_plan_id,
            "quarterId": self.quarter_id,
            "actualValue": self.actual_value,
            "progressSummary": self.progress_summary,
            "reportDocument": self.report_document,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_plan:
            result["actionPlan"] = self.action_plan.to_dict() if self.action_plan else None
        return result

    def __repr__(self) -> str:
        return f"<Report id={self.id} plan={self.action_plan_id} quarter={self.quarter_id}>"
