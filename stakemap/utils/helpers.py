"""Shared input-parsing and commit helpers used by the service layer.

require_int / optional_int:  integer coercion that raises ValidationError
parse_date_input:            ISO / DD.MM.YYYY date parsing, raises ValidationError
parse_datetime_input:        ISO datetime (or date) parsing, raises ValidationError
commit_or_raise:             commit, translating SQLAlchemy failures to domain errors
"""
import logging
import math
from datetime import date, datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from stakemap.core.exceptions import InternalError, MissingFieldError, ValidationError

logger = logging.getLogger(__name__)

# Integer columns are 32-bit on PostgreSQL
MAX_INT = 2**31 - 1


def optional_int(value, field: str, *, positive: bool = True):
    """Coerce *value* to int, or return None when it is absent.

    Accepts ints and digit strings ("12") up to MAX_INT. Booleans and floats
    are rejected.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", details={field: value})
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer", details={field: value})
    if positive and parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer", details={field: value})
    if abs(parsed) > MAX_INT:
        raise ValidationError(f"{field} is out of range", details={field: value})
    return parsed


def require_int(value, field: str, *, positive: bool = True) -> int:
    """Same as optional_int() but the value is mandatory."""
    parsed = optional_int(value, field, positive=positive)
    if parsed is None:
        raise MissingFieldError(field)
    return parsed


def require_number(value, field: str) -> float:
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError(f"{field} must be a number", details={field: value})
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: value}) from None
    if not math.isfinite(parsed):
        raise ValidationError(f"{field} must be a finite number", details={field: "not finite"})
    return parsed


def require_text(value, field: str, max_len: int) -> str:
    text = (value or "").strip() if isinstance(value, str) else ""
    if not text:
        raise MissingFieldError(field)
    return text[:max_len]


def parse_date_input(value, field: str = "date"):
    """Parse a date string, raising ValidationError on bad input.

    Supports: YYYY-MM-DD, YYYY-MM-DDTHH:MM:SS (truncated), DD.MM.YYYY, date objects.
    Empty input returns None.
    """
    if not value:
        return None
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        try:
            return datetime.strptime(text, "%d.%m.%Y").date()
        except ValueError as exc:
            raise ValidationError(
                f"Invalid {field}. Use YYYY-MM-DD or DD.MM.YYYY.",
                details={field: value},
            ) from exc


def parse_datetime_input(value, field: str = "datetime"):
    """Parse an ISO datetime (or bare date) string; None for empty input.

    Naive values are taken as UTC so bounds always compare cleanly.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid {field}. Use ISO 8601.", details={field: value}) from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def commit_or_raise(session, *, on_integrity: Exception | None = None) -> None:
    """Commit *session*; roll back and raise a domain error on failure.

    IntegrityError   → ``on_integrity`` if given, else InternalError
    other DB errors  → InternalError
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        if on_integrity is not None:
            raise on_integrity from exc
        raise InternalError("Constraint violation") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error on commit")
        raise InternalError("Database error") from exc
