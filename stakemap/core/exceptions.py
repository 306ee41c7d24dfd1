"""
Platform-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
map them to HTTP status codes. No service ever builds a Flask response.

Usage:
    from stakemap.core.exceptions import MissingFieldError, NotFoundError, ValidationError

    raise NotFoundError(resource="SubCluster", resource_id=42)
    raise MissingFieldError("yearId")
    raise ValidationError("plannedValue must be a finite number", details={"plannedValue": "nan"})
    raise DuplicateConflict(kpi_id=10)
"""


class NotFoundError(Exception):
    """Raised when a requested or referenced row does not exist.

    Args:
        resource: Human-readable model name (e.g. "ActionPlan", "SubCluster").
        resource_id: The PK (or list of PKs) that was looked up.
    """

    def __init__(self, resource: str, resource_id=None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is missing or malformed.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class MissingFieldError(ValidationError):
    """A required field is absent or blank."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is required", details={field: "missing"})


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness rule. Maps to HTTP 409."""

    def __init__(self, resource: str, field: str, value=None, message: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class DuplicateConflict(ConflictError):
    """A KPI is already planned for the same financial year and geographic scope."""

    def __init__(self, kpi_id: int) -> None:
        self.kpi_id = kpi_id
        super().__init__(
            "KpiPlan",
            "kpi_id",
            kpi_id,
            message=(
                f"Duplicate planning detected for KPI {kpi_id} in the selected "
                "area/year. Please review existing plans."
            ),
        )


class InternalError(Exception):
    """Data-store failure of any kind other than the ones above. Maps to HTTP 500."""
