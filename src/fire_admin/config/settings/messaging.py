"""Config settings – MessagingSettings."""
from __future__ import annotations

import dataclasses

from fire_admin.config.settings.base import Settings
from fire_admin.config.validation import InvalidSettingValueError

TRANSPORTS = ("http2", "http1")


@dataclasses.dataclass(frozen=True)
class MessagingSettings(Settings):
    """Settings for the messaging request handler and service.

    ``timeout`` is seconds per outbound request (single or batch).
    ``transport`` selects how :meth:`Messaging.send_each` fans out.
    """

    _prefix = "FIRE_ADMIN_MESSAGING"

    project_id: str = ""
    host: str = "fcm.googleapis.com"
    batch_url: str = "https://fcm.googleapis.com/batch"
    topic_management_host: str = "iid.googleapis.com"
    timeout: float = 15.0
    transport: str = "http2"

    def _validate(self) -> None:
        if self.timeout <= 0:
            raise InvalidSettingValueError("timeout", self.timeout, "must be positive")
        if self.transport not in TRANSPORTS:
            raise InvalidSettingValueError(
                "transport", self.transport, f"must be one of {', '.join(TRANSPORTS)}"
            )
        if not self.batch_url.startswith("https://"):
            raise InvalidSettingValueError("batch_url", self.batch_url, "must be an https URL")

    @property
    def send_path(self) -> str:
        return f"/v1/projects/{self.project_id}/messages:send"


__all__ = ["MessagingSettings", "TRANSPORTS"]
