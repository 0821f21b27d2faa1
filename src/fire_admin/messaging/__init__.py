"""Messaging – push message delivery to devices, topics and batches."""
from fire_admin.messaging.batch import BatchRequestClient, SubRequest
from fire_admin.messaging.errors import create_messaging_error, get_error_code
from fire_admin.messaging.models import (
    BatchResponse,
    SendResponse,
    TopicManagementError,
    TopicManagementResponse,
)
from fire_admin.messaging.request_handler import MessagingRequestHandler, Transport
from fire_admin.messaging.service import Messaging

__all__ = [
    "BatchRequestClient",
    "BatchResponse",
    "Messaging",
    "MessagingRequestHandler",
    "SendResponse",
    "SubRequest",
    "TopicManagementError",
    "TopicManagementResponse",
    "Transport",
    "create_messaging_error",
    "get_error_code",
]
