"""
Financial calendar service.

Functions:
    - create_financial_year / list_financial_years / get_financial_year
    - update_financial_year / delete_financial_year
    - create_quarter / list_quarters_for_year / get_quarter
    - update_quarter / delete_quarter

Business rules:
    - every (start, end) date pair must have end >= start
    - a year referenced by action plans cannot be deleted
    - a quarter referenced by reports cannot be deleted
"""

import logging

from sqlalchemy import func, select

from stakemap.core.exceptions import ConflictError, NotFoundError, ValidationError
from stakemap.models import db
from stakemap.models.action_plan import ActionPlan
from stakemap.models.financial_year import FinancialYear, Quarter
from stakemap.models.report import Report
from stakemap.utils.helpers import commit_or_raise, parse_date_input, require_int, require_text

logger = logging.getLogger(__name__)

# payload key → model column
_YEAR_DATE_FIELDS = {
    "startDate": "start_date",
    "endDate": "end_date",
    "planStartDate": "plan_start_date",
    "planEndDate": "plan_end_date",
    "reportStartDate": "report_start_date",
    "reportEndDate": "report_end_date",
}
_YEAR_WINDOWS = (
    ("start_date", "end_date"),
    ("plan_start_date", "plan_end_date"),
    ("report_start_date", "report_end_date"),
)
_QUARTER_DATE_FIELDS = {
    "startDate": "start_date",
    "endDate": "end_date",
    "reportDueDate": "report_due_date",
}


# ── Financial years ───────────────────────────────────────────────────────────


def create_financial_year(data: dict) -> dict:
    """Create a financial year.

    Raises:
        ValidationError: name missing, bad date, or a window ending before it starts.
    """
    year = FinancialYear(name=require_text(data.get("name"), "name", 50))
    _apply_dates(year, data, _YEAR_DATE_FIELDS)
    _check_windows(year, _YEAR_WINDOWS)
    db.session.add(year)
    commit_or_raise(db.session)
    logger.info("FinancialYear created", extra={"year_id": year.id})
    return year.to_dict()


def list_financial_years() -> list[dict]:
    items = db.session.execute(
        select(FinancialYear).order_by(FinancialYear.start_date.desc().nullslast(), FinancialYear.id.desc())
    ).scalars().all()
    return [y.to_dict() for y in items]


def get_financial_year(year_id: int) -> dict:
    return _get_year(year_id).to_dict()


def update_financial_year(year_id: int, data: dict) -> dict:
    year = _get_year(year_id)
    try:
        if "name" in data:
            year.name = require_text(data.get("name"), "name", 50)
        _apply_dates(year, data, _YEAR_DATE_FIELDS)
        _check_windows(year, _YEAR_WINDOWS)
    except ValidationError:
        db.session.rollback()
        raise
    commit_or_raise(db.session)
    logger.info("FinancialYear updated", extra={"year_id": year_id})
    return year.to_dict()


def delete_financial_year(year_id: int) -> None:
    """Delete a year and its quarters.

    Raises:
        NotFoundError: unknown year.
        ConflictError: action plans still reference the year.
    """
    year = _get_year(year_id)
    plan_count = db.session.execute(
        select(func.count(ActionPlan.id)).where(ActionPlan.year_id == year_id)
    ).scalar_one()
    if plan_count:
        raise ConflictError(
            "FinancialYear", "id", year_id,
            message=f"Financial year {year_id} has {plan_count} action plan(s) and cannot be deleted",
        )
    for quarter in list(year.quarters):
        db.session.delete(quarter)
    db.session.delete(year)
    commit_or_raise(db.session)
    logger.info("FinancialYear deleted", extra={"year_id": year_id})


# ── Quarters ──────────────────────────────────────────────────────────────────


def create_quarter(data: dict) -> dict:
    """Create a quarter inside an existing financial year."""
    name = require_text(data.get("name"), "name", 50)
    year_id = require_int(data.get("yearId"), "yearId")
    _get_year(year_id)

    quarter = Quarter(name=name, year_id=year_id)
    _apply_dates(quarter, data, _QUARTER_DATE_FIELDS)
    _check_windows(quarter, (("start_date", "end_date"),))
    db.session.add(quarter)
    commit_or_raise(db.session)
    logger.info("Quarter created", extra={"quarter_id": quarter.id, "year_id": year_id})
    return quarter.to_dict()


def list_quarters_for_year(year_id: int) -> list[dict]:
    items = db.session.execute(
        select(Quarter).where(Quarter.year_id == year_id).order_by(Quarter.start_date, Quarter.id)
    ).scalars().all()
    return [q.to_dict() for q in items]


def get_quarter(quarter_id: int) -> dict:
    return _get_quarter(quarter_id).to_dict()


def update_quarter(quarter_id: int, data: dict) -> dict:
    quarter = _get_quarter(quarter_id)
    try:
        if "name" in data:
            quarter.name = require_text(data.get("name"), "name", 50)
        _apply_dates(quarter, data, _QUARTER_DATE_FIELDS)
        _check_windows(quarter, (("start_date", "end_date"),))
    except ValidationError:
        db.session.rollback()
        raise
    commit_or_raise(db.session)
    logger.info("Quarter updated", extra={"quarter_id": quarter_id})
    return quarter.to_dict()


def delete_quarter(quarter_id: int) -> None:
    quarter = _get_quarter(quarter_id)
    report_count = db.session.execute(
        select(func.count(Report.id)).where(Report.quarter_id == quarter_id)
    ).scalar_one()
    if report_count:
        raise ConflictError(
            "Quarter", "id", quarter_id,
            message=f"Quarter {quarter_id} has {report_count} report(s) and cannot be deleted",
        )
    db.session.delete(quarter)
    commit_or_raise(db.session)
    logger.info("Quarter deleted", extra={"quarter_id": quarter_id})


# ── Internal helpers ──────────────────────────────────────────────────────────


def _get_year(year_id: int) -> FinancialYear:
    year = db.session.get(FinancialYear, year_id)
    if year is None:
        raise NotFoundError(resource="FinancialYear", resource_id=year_id)
    return year


def _get_quarter(quarter_id: int) -> Quarter:
    quarter = db.session.get(Quarter, quarter_id)
    if quarter is None:
        raise NotFoundError(resource="Quarter", resource_id=quarter_id)
    return quarter


def _apply_dates(obj, data: dict, fields: dict) -> None:
    for key, column in fields.items():
        if key in data:
            setattr(obj, column, parse_date_input(data[key], key))


def _check_windows(obj, windows) -> None:
    for start_col, end_col in windows:
        start, end = getattr(obj, start_col), getattr(obj, end_col)
        if start and end and end < start:
            raise ValidationError(
                f"{end_col} must not be before {start_col}",
                details={start_col: start.isoformat(), end_col: end.isoformat()},
            )
