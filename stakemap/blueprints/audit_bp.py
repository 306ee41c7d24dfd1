"""
Audit trail blueprint.

Endpoints:
    GET  /api/v1/audit-logs               — list / filter audit logs
    GET  /api/v1/audit-logs/<int:log_id>  — single audit entry
"""

from flask import Blueprint, current_app, jsonify, request

from stakemap.blueprints import query_int
from stakemap.core.exceptions import ValidationError
from stakemap.services import audit_service
from stakemap.utils.errors import register_error_handlers
from stakemap.utils.helpers import parse_datetime_input

audit_bp = Blueprint("audit", __name__, url_prefix="/api/v1/audit-logs")
register_error_handlers(audit_bp)


# ── List / filter ────────────────────────────────────────────────────────────

@audit_bp.route("", methods=["GET"])
def list_audit_logs():
    """
    Return paginated audit logs with optional filters.

    Query params:
        userId  — filter by acting user
        action  — filter by action tag (case-insensitive substring)
        from    — ISO date/datetime lower bound (inclusive)
        to      — ISO date/datetime upper bound (inclusive)
        page    — page number (default 1)
        limit   — items per page (default AUDIT_DEFAULT_LIMIT, max AUDIT_MAX_LIMIT)
    """
    date_from = request.args.get("from")
    date_to = request.args.get("to")
    date_from = parse_datetime_input(date_from, "from") if date_from else None
    date_to = parse_datetime_input(date_to, "to") if date_to else None
    if date_from and date_to and date_from > date_to:
        raise ValidationError("'from' must not be after 'to'", details={"from": "after to"})

    # ── Pagination ───────────────────────────────────────────────────────
    page = query_int("page") or 1
    max_limit = current_app.config.get("AUDIT_MAX_LIMIT", 500)
    limit = query_int("limit") or current_app.config.get("AUDIT_DEFAULT_LIMIT", 50)
    if limit > max_limit:
        raise ValidationError(f"limit must not exceed {max_limit}", details={"limit": limit})

    result = audit_service.list_audit_logs(
        user_id=query_int("userId"),
        action=request.args.get("action") or None,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return jsonify(result), 200


@audit_bp.route("/<int:log_id>", methods=["GET"])
def get_audit_log(log_id: int):
    return jsonify(audit_service.get_audit_log(log_id)), 200
