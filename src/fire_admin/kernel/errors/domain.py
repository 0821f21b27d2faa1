"""Domain errors – local invariant and input violations."""

from __future__ import annotations

from typing import Any

from fire_admin.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a local rule is violated before anything is sent."""

    default_code = "domain_error"


class InvariantViolationError(DomainError):
    """A value object was constructed in an inconsistent state."""

    default_code = "invariant_violation"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` is a list of field-level validation failures.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


__all__ = [
    "DomainError",
    "InvariantViolationError",
    "ValidationError",
]
