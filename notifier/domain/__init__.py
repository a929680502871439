"""Domain models for the notification dispatch service."""

from .models import (
    Channel,
    Notification,
    NotificationRecord,
    NotificationType,
    RecipientContact,
)

__all__ = [
    "Channel",
    "Notification",
    "NotificationRecord",
    "NotificationType",
    "RecipientContact",
]
