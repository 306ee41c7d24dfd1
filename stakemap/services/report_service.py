"""
Quarterly Report Service.

Functions:
    - create_report:            Record an actual value for one KPI plan and quarter
    - list_reports_for_plan:    Reports of one action plan, newest first
    - get_report:               Single report
    - plans_by_subcluster:      Action plans of a sub-cluster with their reports
    - reports_by_subcluster:    Reports of a sub-cluster's plans with their plan
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from stakemap.core.exceptions import NotFoundError, ValidationError
from stakemap.models import db
from stakemap.models.action_plan import ActionPlan, KpiPlan
from stakemap.models.financial_year import Quarter
from stakemap.models.report import Report
from stakemap.utils.helpers import commit_or_raise, require_int, require_number

logger = logging.getLogger(__name__)


def create_report(data: dict) -> dict:
    """Submit a quarterly report.

    Business rules:
      - the KPI plan must belong to the action plan
      - the quarter must belong to the action plan's financial year
      - the report's year is always taken from the plan

    Args:
        data: {actionPlanId, kpiPlanId, quarterId, actualValue,
               progressSummary?, reportDocument?}

    Returns:
        Serialized Report dict with its action plan.

    Raises:
        ValidationError: missing/invalid fields or mismatched plan/quarter.
        NotFoundError: plan, KPI plan or quarter does not exist.
    """
    action_plan_id = require_int(data.get("actionPlanId"), "actionPlanId")
    kpi_plan_id = require_int(data.get("kpiPlanId"), "kpiPlanId")
    quarter_id = require_int(data.get("quarterId"), "quarterId")
    actual_value = require_number(data.get("actualValue"), "actualValue")

    plan = db.session.get(ActionPlan, action_plan_id)
    if plan is None:
        raise NotFoundError(resource="ActionPlan", resource_id=action_plan_id)
    kpi_plan = db.session.get(KpiPlan, kpi_plan_id)
    if kpi_plan is None:
        raise NotFoundError(resource="KpiPlan", resource_id=kpi_plan_id)
    if kpi_plan.action_plan_id != plan.id:
        raise ValidationError(
            f"KpiPlan {kpi_plan_id} does not belong to action plan {action_plan_id}",
            details={"kpiPlanId": kpi_plan_id},
        )
    quarter = db.session.get(Quarter, quarter_id)
    if quarter is None:
        raise NotFoundError(resource="Quarter", resource_id=quarter_id)
    if quarter.year_id != plan.year_id:
        raise ValidationError(
            f"Quarter {quarter_id} is not in the plan's financial year",
            details={"quarterId": quarter_id, "yearId": plan.year_id},
        )

    report = Report(
        action_plan_id=plan.id,
        year_id=plan.year_id,
        kpi_plan_id=kpi_plan.id,
        quarter_id=quarter.id,
        actual_value=actual_value,
        progress_summary=data.get("progressSummary"),
        report_document=(data.get("reportDocument") or "")[:500] or None,
    )
    db.session.add(report)
    commit_or_raise(db.session)
    logger.info(
        "Report submitted",
        extra={"report_id": report.id, "action_plan_id": plan.id, "quarter_id": quarter.id},
    )
    return report.to_dict(include_plan=True)


def list_reports_for_plan(action_plan_id: int) -> list[dict]:
    items = db.session.execute(
        select(Report).where(Report.action_plan_id == action_plan_id).order_by(Report.id.desc())
    ).scalars().all()
    return [r.to_dict() for r in items]


def get_report(report_id: int) -> dict:
    report = db.session.get(Report, report_id)
    if report is None:
        raise NotFoundError(resource="Report", resource_id=report_id)
    return report.to_dict()


def plans_by_subcluster(sub_cluster_id: int) -> list[dict]:
    plans = db.session.execute(
        select(ActionPlan)
        .where(ActionPlan.stakeholder_subcluster_id == sub_cluster_id)
        .options(selectinload(ActionPlan.reports))
        .order_by(ActionPlan.id)
    ).scalars().all()
    result = []
    for plan in plans:
        item = plan.to_dict()
        item["reports"] = [r.to_dict() for r in plan.reports]
        result.append(item)
    return result


def reports_by_subcluster(sub_cluster_id: int) -> list[dict]:
    reports = db.session.execute(
        select(Report)
        .join(ActionPlan, Report.action_plan_id == ActionPlan.id)
        .where(ActionPlan.stakeholder_subcluster_id == sub_cluster_id)
        .options(joinedload(Report.action_plan))
        .order_by(Report.id)
    ).scalars().all()
    return [r.to_dict(include_plan=True) for r in reports]
