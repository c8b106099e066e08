"""Shared domain building blocks."""

from .base import DomainService, Entity, ValueObject
from .exceptions import (
    ActionParseError,
    BlockNotFoundError,
    BusinessRuleError,
    ConcurrencyError,
    DomainError,
    ErrorType,
    PlanPayloadError,
    ValidationError,
)

__all__ = [
    "DomainService",
    "Entity",
    "ValueObject",
    "DomainError",
    "ErrorType",
    "ValidationError",
    "BusinessRuleError",
    "BlockNotFoundError",
    "ConcurrencyError",
    "PlanPayloadError",
    "ActionParseError",
]
