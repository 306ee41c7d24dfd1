"""
Action Plan Blueprint.

Routes for creating, searching, updating and deleting action plans.
All business logic is delegated to ActionPlanService (3-layer architecture);
this module parses input, writes the audit record and shapes responses.

Endpoints:
  Action plans:      GET/POST        /api/v1/action-plans
                     GET/PUT/DELETE  /api/v1/action-plans/<id>
  Duplicate check:   GET             /api/v1/action-plans/duplicate-check

Error mapping:
  ValidationError / missing referenced row on create → 400
  missing plan → 404, duplicate KPI planning → 409, data-store failure → 500
"""

import logging

from flask import Blueprint, jsonify, request

from stakemap.blueprints import json_body, query_int
from stakemap.core.exceptions import NotFoundError
from stakemap.models import db
from stakemap.models.action_plan import PlanScope
from stakemap.services.action_plan_service import ActionPlanService
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import E, api_error, register_error_handlers
from stakemap.utils.helpers import require_int

logger = logging.getLogger(__name__)

action_plan_bp = Blueprint("action_plan", __name__, url_prefix="/api/v1/action-plans")
register_error_handlers(action_plan_bp)

_SEARCH_FILTERS = (
    ("yearId", "year_id"),
    ("stakeholderSubclusterId", "stakeholder_subcluster_id"),
    ("countryId", "country_id"),
    ("provinceId", "province_id"),
    ("districtId", "district_id"),
    ("stakeholderId", "stakeholder_id"),
    ("subClusterId", "sub_cluster_id"),
    ("kpiId", "kpi_id"),
)


def _service() -> ActionPlanService:
    return ActionPlanService(db.session)


@action_plan_bp.route("", methods=["POST"])
def create_action_plan():
    """Create an action plan together with its KPI plans.

    Body: { "yearId": int, "stakeholderSubclusterId": int, "stakeholderId"?: int,
            "planLevel": "country"|"province"|"district", "<level>Id": int,
            "document"?, "comment"?, "description"?,
            "kpiPlans": [{"kpiId": int, "plannedValue": number}, ...] }
    Returns: { "message": str, "plan": {...} } (201)
    """
    data = json_body()
    try:
        plan = _service().create(data)
    except NotFoundError as exc:
        # A missing referenced row is the caller's mistake here, not a missing resource
        return api_error(
            E.VALIDATION_INVALID,
            f"Provided reference does not exist: {exc}",
            status=400,
            details={"resource": exc.resource, "id": exc.resource_id},
        )

    record_request_audit(
        "CREATE_ACTION_PLAN",
        "A new action plan was created",
        details=(
            f"ActionPlan ID: {plan['id']}; stakeholderId: {plan['stakeholderId'] or 'none'}; "
            f"stakeholderSubclusterId: {plan['stakeholderSubclusterId']}"
        ),
        entity_type="action_plan",
        entity_id=plan["id"],
    )
    return jsonify({"message": "Action plan created successfully", "plan": plan}), 201


@action_plan_bp.route("", methods=["GET"])
def search_action_plans():
    """Search action plans, newest first.

    Query params (all optional integers): yearId, stakeholderSubclusterId,
        countryId, provinceId, districtId, stakeholderId, subClusterId, kpiId
    Returns: { "items": [...], "total": int }
    """
    filters = {kwarg: query_int(param) for param, kwarg in _SEARCH_FILTERS}
    items = _service().search(**filters)
    return jsonify({"items": items, "total": len(items)}), 200


@action_plan_bp.route("/duplicate-check", methods=["GET"])
def duplicate_check():
    """Check whether a KPI is already planned for a year and scope.

    Query params: yearId, kpiId, planLevel, and countryId|provinceId|districtId
    Returns: { "duplicate": bool }
    """
    year_id = require_int(request.args.get("yearId"), "yearId")
    kpi_id = require_int(request.args.get("kpiId"), "kpiId")
    scope = PlanScope.from_payload(request.args.to_dict())
    duplicate = _service().check_duplicate(year_id, kpi_id, scope)
    return jsonify({"duplicate": duplicate}), 200


@action_plan_bp.route("/<int:plan_id>", methods=["GET"])
def get_action_plan(plan_id: int):
    """Get a single action plan with KPI plans, year, stakeholder and sub-cluster."""
    return jsonify(_service().get(plan_id)), 200


@action_plan_bp.route("/<int:plan_id>", methods=["PUT"])
def update_action_plan(plan_id: int):
    """Patch document/comment/description and the plan scope.

    Body: { "document"?, "comment"?, "description"?, "planLevel"?, "<level>Id"? }
    Returns: { "message": str, "updated": {...} }
    """
    updated = _service().update(plan_id, json_body())
    record_request_audit(
        "UPDATE_ACTION_PLAN",
        "Action plan updated",
        details=f"ActionPlan ID: {plan_id}",
        entity_type="action_plan",
        entity_id=plan_id,
    )
    return jsonify({"message": "Action plan updated successfully", "updated": updated}), 200


@action_plan_bp.route("/<int:plan_id>", methods=["DELETE"])
def delete_action_plan(plan_id: int):
    """Delete an action plan and all of its KPI plans."""
    result = _service().delete(plan_id)
    record_request_audit(
        "DELETE_ACTION_PLAN",
        "Action plan deleted",
        details=f"ActionPlan ID: {plan_id}; KPI plans removed: {result['kpiPlansDeleted']}",
        entity_type="action_plan",
        entity_id=plan_id,
    )
    return jsonify({"message": "Action plan deleted successfully"}), 200
