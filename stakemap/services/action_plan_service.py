"""
Action Plan Service.

Creates action plans together with their KPI plans as one atomic unit and
prevents the same KPI being planned twice for one financial year and
geographic scope.

The service is constructed with the SQLAlchemy session it works on:

    service = ActionPlanService(db.session)
    plan = service.create(payload)

Methods:
    - create:           validate, check references, duplicate-check, insert plan + KPI plans
    - check_duplicate:  is a KPI already planned for this year/scope?
    - get:              fully joined plan by id
    - search:           conjunctive filter, newest first
    - update:           patch free-text fields and scope
    - delete:           remove comments, reports, KPI plans and the plan in one transaction

Duplicate rule: a KpiPlan may not share (kpi, year, level, geo id) with a
KpiPlan of another plan. The check runs inside the insert's transaction and
``uq_kpi_plan_scope`` catches any concurrent writer that slips past it.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from stakemap.core.exceptions import (
    DuplicateConflict,
    InternalError,
    NotFoundError,
    ValidationError,
)
from stakemap.models.action_plan import ActionPlan, KpiPlan, PlanLevel, PlanScope
from stakemap.models.comment import Comment
from stakemap.models.financial_year import FinancialYear
from stakemap.models.geography import Country, District, Province
from stakemap.models.kpi import Kpi, SubCluster
from stakemap.models.report import Report
from stakemap.models.stakeholder import Stakeholder
from stakemap.utils.helpers import optional_int, require_int, require_number

logger = logging.getLogger(__name__)

_GEO_MODELS = {
    PlanLevel.COUNTRY: Country,
    PlanLevel.PROVINCE: Province,
    PlanLevel.DISTRICT: District,
}

_TEXT_FIELDS = ("document", "comment", "description")
_SCOPE_KEYS = ("planLevel",) + tuple(level.payload_key for level in PlanLevel)


class ActionPlanService:
    """Business logic for ActionPlan / KpiPlan. Owns its transactions."""

    def __init__(self, session):
        self.session = session

    # ── Create ───────────────────────────────────────────────────────────

    def create(self, data: dict) -> dict:
        """Create an action plan with its KPI plans.

        Args:
            data: ``{yearId, stakeholderSubclusterId, stakeholderId?, planLevel,
                  countryId?|provinceId?|districtId?, document?, comment?,
                  description?, kpiPlans: [{kpiId, plannedValue}]}``

        Returns:
            The created plan with kpiPlans (each with its KPI), financialYear,
            stakeholder and stakeholderSubcluster (id + name).

        Raises:
            ValidationError: malformed or missing fields.
            NotFoundError: a referenced row does not exist. Nothing is written.
            DuplicateConflict: a KPI is already planned for this year/scope.
            InternalError: any other data-store failure. Nothing is written.
        """
        year_id = require_int(data.get("yearId"), "yearId")
        subcluster_id = require_int(data.get("stakeholderSubclusterId"), "stakeholderSubclusterId")
        stakeholder_id = optional_int(data.get("stakeholderId"), "stakeholderId")
        scope = PlanScope.from_payload(data)
        entries = _parse_kpi_plans(data.get("kpiPlans"))
        kpi_ids = [kpi_id for kpi_id, _ in entries]

        self._require(FinancialYear, year_id)
        self._require(SubCluster, subcluster_id)
        if stakeholder_id is not None:
            self._require(Stakeholder, stakeholder_id)
        self._require(_GEO_MODELS[scope.level], scope.geo_id)
        self._require_kpis(kpi_ids)

        try:
            for kpi_id in kpi_ids:
                if self.check_duplicate(year_id, kpi_id, scope):
                    raise DuplicateConflict(kpi_id)

            plan = ActionPlan(
                year_id=year_id,
                stakeholder_subcluster_id=subcluster_id,
                stakeholder_id=stakeholder_id,
                document=data.get("document"),
                comment=data.get("comment"),
                description=data.get("description"),
            )
            plan.apply_scope(scope)
            self.session.add(plan)
            self.session.flush()

            children = []
            for kpi_id, planned_value in entries:
                child = KpiPlan(action_plan_id=plan.id, kpi_id=kpi_id, planned_value=planned_value)
                child.stamp_scope(year_id, scope)
                children.append(child)
            self.session.add_all(children)
            self.session.flush()

            result = self._load(plan.id).to_dict(include_details=True)
            self.session.commit()
        except DuplicateConflict:
            self.session.rollback()
            raise
        except IntegrityError as exc:
            self.session.rollback()
            raise self._integrity_error(year_id, scope, kpi_ids) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to create action plan")
            raise InternalError("Failed to create action plan") from exc

        logger.info(
            "Action plan created",
            extra={
                "action_plan_id": result["id"],
                "year_id": year_id,
                "plan_level": scope.level.value,
                "kpi_count": len(entries),
            },
        )
        return result

    def check_duplicate(
        self,
        year_id: int,
        kpi_id: int,
        scope: PlanScope,
        exclude_plan_id: int | None = None,
    ) -> bool:
        """Return True when *kpi_id* is already planned for the year and scope."""
        geo_column = getattr(ActionPlan, scope.level.geo_column)
        stmt = (
            select(KpiPlan.id)
            .join(ActionPlan, KpiPlan.action_plan_id == ActionPlan.id)
            .where(
                KpiPlan.kpi_id == kpi_id,
                ActionPlan.year_id == year_id,
                ActionPlan.plan_level == scope.level.value,
                geo_column == scope.geo_id,
            )
            .limit(1)
        )
        if exclude_plan_id is not None:
            stmt = stmt.where(ActionPlan.id != exclude_plan_id)
        return self.session.execute(stmt).first() is not None

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, plan_id: int) -> dict:
        """Return the fully joined plan. Raises NotFoundError."""
        plan = self._load(plan_id)
        if plan is None:
            raise NotFoundError(resource="ActionPlan", resource_id=plan_id)
        return plan.to_dict(include_details=True)

    def search(
        self,
        *,
        year_id: int | None = None,
        stakeholder_subcluster_id: int | None = None,
        country_id: int | None = None,
        province_id: int | None = None,
        district_id: int | None = None,
        stakeholder_id: int | None = None,
        sub_cluster_id: int | None = None,
        kpi_id: int | None = None,
    ) -> list[dict]:
        """Search plans, newest first. No pagination.

        sub_cluster_id keeps plans having any KPI plan whose KPI belongs to
        that sub-cluster. kpi_id narrows the embedded KPI plans only.
        """
        stmt = select(ActionPlan)
        equality_filters = (
            (ActionPlan.year_id, year_id),
            (ActionPlan.stakeholder_subcluster_id, stakeholder_subcluster_id),
            (ActionPlan.country_id, country_id),
            (ActionPlan.province_id, province_id),
            (ActionPlan.district_id, district_id),
            (ActionPlan.stakeholder_id, stakeholder_id),
        )
        for column, value in equality_filters:
            if value is not None:
                stmt = stmt.where(column == value)
        if sub_cluster_id is not None:
            stmt = stmt.where(
                ActionPlan.kpi_plans.any(KpiPlan.kpi.has(Kpi.sub_cluster_id == sub_cluster_id))
            )
        stmt = stmt.options(*_detail_options()).order_by(
            ActionPlan.created_at.desc(), ActionPlan.id.desc()
        )

        plans = self.session.execute(stmt).scalars().all()
        results = []
        for plan in plans:
            children = None
            if kpi_id is not None:
                children = [kp for kp in plan.kpi_plans if kp.kpi_id == kpi_id]
            results.append(plan.to_dict(include_details=True, kpi_plans=children))
        return results

    # ── Update / delete ──────────────────────────────────────────────────

    def update(self, plan_id: int, data: dict) -> dict:
        """Patch document/comment/description and the plan scope.

        KPI plans keep their KPI and planned value; only their copy of the
        scope is re-stamped so ``uq_kpi_plan_scope`` stays accurate.

        Raises:
            NotFoundError: plan (or the new geo id) does not exist.
            ValidationError: invalid scope.
            DuplicateConflict: the new scope collides with another plan.
        """
        plan = self._load(plan_id)
        if plan is None:
            raise NotFoundError(resource="ActionPlan", resource_id=plan_id)

        year_id = plan.year_id
        try:
            new_scope = self._apply_patch(plan, data)
        except (ValidationError, NotFoundError):
            self.session.rollback()
            raise

        kpi_ids = [child.kpi_id for child in plan.kpi_plans]
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise self._integrity_error(
                year_id, new_scope, kpi_ids, exclude_plan_id=plan_id,
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to update action plan %s", plan_id)
            raise InternalError("Failed to update action plan") from exc

        logger.info(
            "Action plan updated",
            extra={"action_plan_id": plan_id, "scope_changed": new_scope is not None},
        )
        return plan.to_dict()

    def delete(self, plan_id: int) -> dict:
        """Delete the plan's reports (with their comments) and KPI plans, then the plan, atomically."""
        if self.session.get(ActionPlan, plan_id) is None:
            raise NotFoundError(resource="ActionPlan", resource_id=plan_id)
        try:
            report_ids = select(Report.id).where(Report.action_plan_id == plan_id)
            self.session.execute(delete(Comment).where(Comment.report_id.in_(report_ids)))
            self.session.execute(delete(Report).where(Report.action_plan_id == plan_id))
            removed = self.session.execute(
                delete(KpiPlan).where(KpiPlan.action_plan_id == plan_id)
            ).rowcount
            self.session.execute(delete(ActionPlan).where(ActionPlan.id == plan_id))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to delete action plan %s", plan_id)
            raise InternalError("Failed to delete action plan") from exc

        logger.info(
            "Action plan deleted",
            extra={"action_plan_id": plan_id, "kpi_plans_deleted": removed},
        )
        return {"id": plan_id, "kpiPlansDeleted": removed}

    # ── Internal helpers ─────────────────────────────────────────────────

    def _load(self, plan_id: int) -> ActionPlan | None:
        stmt = (
            select(ActionPlan)
            .where(ActionPlan.id == plan_id)
            .options(*_detail_options())
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _apply_patch(self, plan: ActionPlan, data: dict) -> PlanScope | None:
        """Apply text fields and any scope change to *plan*; return the new scope."""
        for field in _TEXT_FIELDS:
            if data.get(field) is not None:
                setattr(plan, field, data[field])

        if not any(data.get(key) is not None for key in _SCOPE_KEYS):
            return None

        # Unspecified parts of the scope fall back to the stored values
        merged = {"planLevel": data.get("planLevel") or plan.plan_level}
        for level in PlanLevel:
            value = data.get(level.payload_key)
            merged[level.payload_key] = value if value is not None else getattr(plan, level.geo_column)
        candidate = PlanScope.from_payload(merged)
        if candidate == plan.scope:
            return None

        self._require(_GEO_MODELS[candidate.level], candidate.geo_id)
        plan.apply_scope(candidate)
        for child in plan.kpi_plans:
            child.stamp_scope(plan.year_id, candidate)
        return candidate

    def _require(self, model, pk: int):
        obj = self.session.get(model, pk)
        if obj is None:
            raise NotFoundError(resource=model.__name__, resource_id=pk)
        return obj

    def _require_kpis(self, kpi_ids: list[int]) -> None:
        found = set(self.session.execute(select(Kpi.id).where(Kpi.id.in_(kpi_ids))).scalars())
        missing = [kpi_id for kpi_id in kpi_ids if kpi_id not in found]
        if missing:
            raise NotFoundError(
                resource="Kpi", resource_id=missing[0] if len(missing) == 1 else missing,
            )

    def _integrity_error(self, year_id, scope, kpi_ids, exclude_plan_id=None) -> Exception:
        """Translate an IntegrityError (session already rolled back) to a domain error.

        A concurrent writer may have claimed one of the KPIs; if so name it.
        """
        if year_id is not None and scope is not None:
            for kpi_id in kpi_ids:
                if self.check_duplicate(year_id, kpi_id, scope, exclude_plan_id=exclude_plan_id):
                    logger.warning(
                        "Duplicate KPI plan rejected by constraint",
                        extra={"kpi_id": kpi_id, "year_id": year_id},
                    )
                    return DuplicateConflict(kpi_id)
        return InternalError("Constraint violation while writing action plan")


def _detail_options():
    return (
        selectinload(ActionPlan.kpi_plans).joinedload(KpiPlan.kpi),
        joinedload(ActionPlan.financial_year),
        joinedload(ActionPlan.stakeholder),
        joinedload(ActionPlan.stakeholder_subcluster),
    )


def _parse_kpi_plans(raw) -> list[tuple[int, float]]:
    """Validate the kpiPlans list → [(kpi_id, planned_value), ...] in request order."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("kpiPlans must be a non-empty list", details={"kpiPlans": "missing"})

    entries = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(
                "Each kpiPlans entry must be an object", details={"kpiPlans": index},
            )
        kpi_id = require_int(item.get("kpiId"), f"kpiPlans[{index}].kpiId")
        planned_value = require_number(item.get("plannedValue"), f"kpiPlans[{index}].plannedValue")
        if kpi_id in seen:
            raise ValidationError(
                f"KPI {kpi_id} is listed more than once in kpiPlans", details={"kpiId": kpi_id},
            )
        seen.add(kpi_id)
        entries.append((kpi_id, planned_value))
    return entries
