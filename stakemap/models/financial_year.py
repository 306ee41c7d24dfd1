"""
Stakeholder Mapping & Reporting API
Financial calendar models.

Models:
    - FinancialYear: planning year with plan/report submission windows
    - Quarter: reporting period inside a financial year
"""

from stakemap.models import db


def _iso(value):
    return value.isoformat() if value else None


class FinancialYear(db.Model):
    __tablename__ = "financial_years"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, comment="e.g. 2025/2026")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    plan_start_date = db.Column(db.Date, nullable=True, comment="Action plan submission opens")
    plan_end_date = db.Column(db.Date, nullable=True)
    report_start_date = db.Column(db.Date, nullable=True, comment="Quarterly reporting opens")
    report_end_date = db.Column(db.Date, nullable=True)

    quarters = db.relationship("Quarter", back_populates="financial_year", order_by="Quarter.start_date")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "planStartDate": _iso(self.plan_start_date),
            "planEndDate": _iso(self.plan_end_date),
            "reportStartDate": _iso(self.report_start_date),
            "reportEndDate": _iso(self.report_end_date),
        }

    def __repr__(self) -> str:
        return f"<FinancialYear id={self.id} name={self.name!r}>"


class Quarter(db.Model):
    __tablename__ = "quarters"

    id = db.Column(db.Integer, primary_key=True)
    year_id = db.Column(
        db.Integer,
        db.ForeignKey("financial_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(50), nullable=False, comment="e.g. Q1")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    report_due_date = db.Column(db.Date, nullable=True)

    financial_year = db.relationship("FinancialYear", back_populates="quarters")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "yearId": self.year_id,
            "name": self.name,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "reportDueDate": _iso(self.report_due_date),
        }

    def __repr__(self) -> str:
        return f"<Quarter id={self.id} name={self.name!r} year={self.year_id}>"
