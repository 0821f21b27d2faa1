"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── InvariantViolationError
    │   └── ValidationError
    ├── InfrastructureError      (infrastructure.py)
    │   ├── ConnectionError
    │   ├── TimeoutError
    │   ├── SerializationError
    │   └── ExternalServiceError
    │       └── RequestResponseError   (adapters.http.response)
    └── ServiceError             (service.py)
        ├── MessagingError
        └── AuthError
"""

from fire_admin.kernel.errors.base import BaseError
from fire_admin.kernel.errors.domain import (
    DomainError,
    InvariantViolationError,
    ValidationError,
)
from fire_admin.kernel.errors.infrastructure import (
    ConnectionError,
    ExternalServiceError,
    InfrastructureError,
    SerializationError,
)
from fire_admin.kernel.errors.infrastructure import TimeoutError as InfrastructureTimeoutError
from fire_admin.kernel.errors.service import (
    AuthError,
    AuthErrorCode,
    MessagingError,
    MessagingErrorCode,
    ServiceError,
)

__all__ = [
    "AuthError",
    "AuthErrorCode",
    "BaseError",
    "ConnectionError",
    "DomainError",
    "ExternalServiceError",
    "InfrastructureError",
    "InfrastructureTimeoutError",
    "InvariantViolationError",
    "MessagingError",
    "MessagingErrorCode",
    "SerializationError",
    "ServiceError",
    "ValidationError",
]
