"""Structural validation of notifications before any side effect."""

from notifier.domain.models import Channel, Notification, NotificationType

VALID_CHANNELS = frozenset(channel.value for channel in Channel)
VALID_TYPES = frozenset(kind.value for kind in NotificationType)


def validate(notification: Notification) -> bool:
    """Check a notification is well-formed. Pure; no I/O.

    A notification is rejected when it has no recipients, no channels, a
    channel other than push/sms, or an unrecognised type. Payload content
    (title, body, SMS text) is not checked here.

    Args:
        notification: Notification to check

    Returns:
        True if the notification may be dispatched
    """
    if not notification.recipients:
        return False
    if not notification.channels:
        return False
    if not notification.channels <= VALID_CHANNELS:
        return False
    return notification.type in VALID_TYPES
