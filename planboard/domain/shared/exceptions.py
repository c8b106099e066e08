"""
Domain Exceptions

Defines custom exceptions for planning errors with discriminated error types.
Most planning failures are not exceptional: the resolver and the drag
controller turn them into warnings or no-ops. These exceptions cover the cases
where a caller broke a contract.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    CONCURRENCY = "concurrency"
    PAYLOAD = "payload"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when domain validation rules are violated."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details: dict[str, str | int | bool | None] = {
            "field": field_name,
            "value": str(value) if value is not None else None,
            "error_code": self.error_code,
        }

        super().__init__(full_message, ErrorType.VALIDATION, details)


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class BlockNotFoundError(DomainError):
    """Raised when a block id does not exist in the plan."""

    def __init__(self, block_id: str) -> None:
        super().__init__(
            f"Block {block_id} not found",
            ErrorType.NOT_FOUND,
            {"block_id": block_id},
        )
        self.block_id = block_id


class ConcurrencyError(DomainError):
    """Raised when a block collection is committed on top of a stale version."""

    def __init__(self, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"Block collection changed underneath the caller: based on version "
            f"{expected_version}, current version is {actual_version}",
            ErrorType.CONCURRENCY,
            {
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.expected_version = expected_version
        self.actual_version = actual_version


class PlanPayloadError(DomainError):
    """Raised when a persisted plan payload carries nothing usable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.PAYLOAD)


class ActionParseError(DomainError):
    """Raised when an assistant action descriptor cannot be parsed."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(
            f"Action #{index + 1} rejected: {message}",
            ErrorType.VALIDATION,
            {"index": index},
        )
        self.index = index
