"""
fire_admin – Admin SDK for the push-messaging and multi-tenant auth backends.

Import path convention::

    from fire_admin.messaging import Messaging, MessagingRequestHandler
    from fire_admin.messaging.errors import create_messaging_error
    from fire_admin.auth import Tenant
    from fire_admin.kernel.errors import MessagingError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
