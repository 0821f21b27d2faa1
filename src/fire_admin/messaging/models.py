"""Messaging – send outcome value objects."""
from __future__ import annotations

import dataclasses
from typing import Any, Iterable

from fire_admin.kernel.errors import InvariantViolationError, MessagingError, MessagingErrorCode
from fire_admin.kernel.types import Err, Ok, Result
from fire_admin.messaging.errors import SERVER_TO_CLIENT_CODE

__all__ = [
    "BatchResponse",
    "SendResponse",
    "TopicManagementError",
    "TopicManagementResponse",
]


@dataclasses.dataclass(frozen=True)
class SendResponse:
    """Outcome of sending one message.

    Exactly one of ``message_id`` / ``error`` is set, as ``success`` says.
    Prefer the :meth:`ok` / :meth:`failed` constructors.
    """

    success: bool
    message_id: str | None = None
    error: MessagingError | None = None

    def __post_init__(self) -> None:
        if self.success and (self.message_id is None or self.error is not None):
            raise InvariantViolationError("A successful SendResponse carries a message_id and no error")
        if not self.success and (self.error is None or self.message_id is not None):
            raise InvariantViolationError("A failed SendResponse carries an error and no message_id")

    @classmethod
    def ok(cls, message_id: str) -> "SendResponse":
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: MessagingError) -> "SendResponse":
        return cls(success=False, error=error)

    @property
    def result(self) -> Result[str, MessagingError]:
        """The outcome as ``Ok(message_id)`` or ``Err(error)``."""
        if self.success:
            return Ok(self.message_id)
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "message_id": self.message_id}
        return {"success": False, "error": self.error.to_dict() if self.error else None}


@dataclasses.dataclass(frozen=True)
class BatchResponse:
    """Ordered per-message outcomes of a batch send.

    ``responses[i]`` belongs to the i-th message sent. Counts are derived
    from ``responses`` and always add up to its length.
    """

    responses: tuple[SendResponse, ...] = ()

    @classmethod
    def from_responses(cls, responses: Iterable[SendResponse]) -> "BatchResponse":
        return cls(tuple(responses))

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count

    def __len__(self) -> int:
        return len(self.responses)


@dataclasses.dataclass(frozen=True)
class TopicManagementError:
    """A token that could not be (un)subscribed, by its input index."""

    index: int
    error: MessagingError


@dataclasses.dataclass(frozen=True)
class TopicManagementResponse:
    """Outcome of a topic subscribe / unsubscribe call."""

    success_count: int
    failure_count: int
    errors: tuple[TopicManagementError, ...] = ()

    @classmethod
    def from_results(cls, results: list[dict[str, Any]]) -> "TopicManagementResponse":
        """Build from the backend's ``results`` array (one entry per token)."""
        errors: list[TopicManagementError] = []
        for index, result in enumerate(results):
            server_code = result.get("error") if isinstance(result, dict) else None
            if server_code:
                code = SERVER_TO_CLIENT_CODE.get(server_code, MessagingErrorCode.UNKNOWN)
                errors.append(
                    TopicManagementError(
                        index,
                        MessagingError(
                            f"Topic management failed: {server_code}",
                            code=code,
                            detail={"server_code": server_code},
                        ),
                    )
                )
        return cls(len(results) - len(errors), len(errors), tuple(errors))
