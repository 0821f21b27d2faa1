"""Kernel – framework-agnostic building blocks."""

from fire_admin.kernel.errors import (
    AuthError,
    BaseError,
    DomainError,
    ExternalServiceError,
    InfrastructureError,
    InvariantViolationError,
    MessagingError,
    ServiceError,
    ValidationError,
)
from fire_admin.kernel.types import Err, Ok, Result

__all__ = [
    "AuthError",
    "BaseError",
    "DomainError",
    "Err",
    "ExternalServiceError",
    "InfrastructureError",
    "InvariantViolationError",
    "MessagingError",
    "Ok",
    "Result",
    "ServiceError",
    "ValidationError",
]
