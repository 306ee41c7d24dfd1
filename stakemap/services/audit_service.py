"""
Audit Log Service.

Read side of the audit trail plus the request-scoped writer used by
blueprints after every mutating call.

Functions:
    - record_request_audit:  Append one audit row using the current request's actor/IP/UA
    - list_audit_logs:       Filter by user, action substring, time window; paginated
    - get_audit_log:         Single entry
"""

import logging

from flask import g, has_request_context, request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from stakemap.core.exceptions import NotFoundError
from stakemap.models import db
from stakemap.models.audit import AuditLog, write_audit

logger = logging.getLogger(__name__)


def record_request_audit(
    action: str,
    description: str,
    *,
    details: str | None = None,
    entity_type: str | None = None,
    entity_id=None,
) -> AuditLog | None:
    """Write one audit row for the current request and commit it.

    Runs after the business write has committed, so a failing audit insert
    is logged and rolled back without undoing that write.
    """
    user_id = None
    actor = "anonymous"
    ip_address = None
    user_agent = None
    if has_request_context():
        user_id = getattr(g, "jwt_user_id", None)
        actor = getattr(g, "jwt_username", None) or (f"user:{user_id}" if user_id else "anonymous")
        forwarded = request.headers.get("X-Forwarded-For", "")
        ip_address = forwarded.split(",")[0].strip() or request.remote_addr
        user_agent = request.headers.get("User-Agent")

    try:
        log = write_audit(
            action=action,
            description=description,
            details=details,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            actor=actor,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to save audit log", extra={"event_type": action})
        return None

    logger.debug("AuditLog saved for %s | Action: %s", actor, action)
    return log


def list_audit_logs(
    user_id: int | None = None,
    action: str | None = None,
    date_from=None,
    date_to=None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    """List audit entries newest first.

    Args:
        user_id: Optional exact user filter.
        action: Optional case-insensitive substring of the action tag.
        date_from / date_to: Optional inclusive timestamp bounds.
        page: 1-based page number.
        limit: Page size.

    Returns:
        {"items": [...], "total": int, "page": int, "limit": int}
    """
    conditions = []
    if user_id is not None:
        conditions.append(AuditLog.user_id == user_id)
    if action:
        conditions.append(func.lower(AuditLog.action).contains(action.lower()))
    if date_from is not None:
        conditions.append(AuditLog.timestamp >= date_from)
    if date_to is not None:
        conditions.append(AuditLog.timestamp <= date_to)

    total = db.session.execute(
        select(func.count(AuditLog.id)).where(*conditions)
    ).scalar_one()
    items = db.session.execute(
        select(AuditLog)
        .where(*conditions)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return {"items": [log.to_dict() for log in items], "total": total, "page": page, "limit": limit}


def get_audit_log(log_id: int) -> dict:
    log = db.session.get(AuditLog, log_id)
    if log is None:
        raise NotFoundError(resource="AuditLog", resource_id=log_id)
    return log.to_dict()
