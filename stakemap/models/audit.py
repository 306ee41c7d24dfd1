"""
Stakeholder Mapping & Reporting API
Audit domain model.

Models:
    - AuditLog: immutable, append-only trail of every create/update/delete.
"""

from datetime import datetime, timezone

from stakemap.models import db


def _as_int(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class AuditLog(db.Model):
    """
    One row per mutating action.

    ``action`` is an upper-case verb/entity tag such as ``CREATE_ACTION_PLAN``;
    ``details`` carries the affected ids in free text.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("idx_audit_entity", "entity_type", "entity_id"),
        db.Index("idx_audit_user", "user_id"),
        db.Index("idx_audit_action", "action"),
        db.Index("idx_audit_ts", "timestamp"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, comment="Subject of the caller's JWT")
    actor = db.Column(db.String(150), nullable=False, default="anonymous")

    action = db.Column(db.String(60), nullable=False)
    description = db.Column(db.String(300), nullable=True)
    details = db.Column(db.Text, nullable=True)

    entity_type = db.Column(db.String(40), nullable=True, comment="action_plan | kpi | report | …")
    entity_id = db.Column(db.String(36), nullable=True)

    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(300), nullable=True)

    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "actor": self.actor,
            "action": self.action,
            "description": self.description,
            "details": self.details,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.action} on {self.entity_type}/{self.entity_id}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_audit(
    *,
    action: str,
    description: str | None = None,
    details: str | None = None,
    entity_type: str | None = None,
    entity_id=None,
    user_id=None,
    actor: str = "anonymous",
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """
    Append a single audit row.  Uses ``flush`` so callers keep
    transaction control.

    Returns the (flushed) AuditLog instance.
    """
    log = AuditLog(
        user_id=_as_int(user_id),
        actor=(actor or "anonymous")[:150],
        action=action,
        description=(description or "")[:300] or None,
        details=details,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip_address=(ip_address or "")[:64] or None,
        user_agent=(user_agent or "")[:300] or None,
    )
    db.session.add(log)
    db.session.flush()
    return log
