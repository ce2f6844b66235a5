"""Typed failures raised by the billing engine.

Every failure carries a ``kind`` discriminant so batch code can decide
whether to skip, record or propagate it without looking at message text.
"""

from enum import Enum

from utilbill.models.enums import PeriodRole


class ErrorKind(str, Enum):
    """Failure classification."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INSUFFICIENT_DATA = "insufficient_data"
    FORBIDDEN = "forbidden"
    TIMEOUT = "timeout"


class Entity(str, Enum):
    """Catalog entity that could not be resolved."""

    METER = "meter"
    STALL = "stall"
    TENANT = "tenant"
    BUILDING = "building"


class BillingError(Exception):
    """Base class for engine failures."""

    kind: ErrorKind

    def __init__(self, message: str, entity: Entity | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity = entity


class ValidationError(BillingError):
    """Malformed date, unsupported utility type or inverted range."""

    kind = ErrorKind.VALIDATION


class NotFoundError(BillingError):
    """A meter, stall, tenant or building is missing from the catalog."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: Entity, message: str | None = None) -> None:
        super().__init__(message or f"{entity.value.capitalize()} not found", entity)


class InsufficientDataError(BillingError):
    """No reading exists inside one or more required windows."""

    kind = ErrorKind.INSUFFICIENT_DATA

    def __init__(self, message: str, missing: list[PeriodRole]) -> None:
        super().__init__(message)
        self.missing = missing


class ForbiddenError(BillingError):
    """The resolved building is outside the caller's scope restriction."""

    kind = ErrorKind.FORBIDDEN


class ItemTimeoutError(BillingError):
    """A per-item computation exceeded the caller's timeout."""

    kind = ErrorKind.TIMEOUT
