"""NotifyHandler - receive webhook notifications and surface them on the desktop."""

from notify_handler.core import NotificationCategory, NotificationPayload, Settings
from notify_handler.listener import ListenerState, WebhookListener

__all__ = [
    "ListenerState",
    "NotificationCategory",
    "NotificationPayload",
    "Settings",
    "WebhookListener",
]

__version__ = "0.1.0"
