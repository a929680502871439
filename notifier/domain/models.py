"""Core domain models for notifications and recipient contacts.

- Notification: an immutable delivery intent built by callers
- NotificationType / Channel: the recognised enumerations
- RecipientContact: per-recipient delivery addresses from the directory
- NotificationRecord: a notification as persisted by the store
"""

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field, field_serializer, field_validator


class NotificationType(str, Enum):
    """Reasons a notification is sent."""

    EVENT_UPDATED = "event-updated"
    RSVP = "rsvp"
    EVENT_MEMBER_ATTENDING = "event-member-attending"
    CO_HOST_GRANTED = "co-host-granted"
    EXPENSE_CREATED = "expense-created"
    EXPENSE_UPDATED = "expense-updated"
    EXPENSE_DELETED = "expense-deleted"
    GENERIC = "generic"


class Channel(str, Enum):
    """Delivery channels."""

    PUSH = "push"
    SMS = "sms"


def _plain(value):
    """Unwrap enum members so sets and comparisons work on raw strings."""
    return value.value if isinstance(value, Enum) else value


class Notification(BaseModel):
    """A delivery intent: who gets what, through which channels.

    Unknown types or channels and empty recipient lists are accepted here
    and rejected by
    ``notifier.dispatch.validator.validate`` before any side effect.

    Attributes:
        type: Notification type (a NotificationType value when valid)
        channels: Requested channels; duplicates collapse
        recipients: Recipient ids in order; duplicates are kept
        title: Push title
        body: Push body
        sms_message: SMS text; empty means SMS is not sent
        data: Read-only string mapping forwarded verbatim to the push provider
    """

    type: str
    channels: FrozenSet[str] = Field(default_factory=frozenset)
    recipients: Tuple[str, ...] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("recipients", "to"),
    )
    title: str = ""
    body: str = ""
    sms_message: str = Field(
        "",
        validation_alias=AliasChoices("sms_message", "smsMessage"),
        serialization_alias="smsMessage",
    )
    data: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("type", mode="before")
    @classmethod
    def unwrap_type(cls, v):
        """Accept NotificationType members as well as raw strings."""
        return _plain(v)

    @field_validator("channels", mode="before")
    @classmethod
    def unwrap_channels(cls, v):
        """Accept Channel members as well as raw strings."""
        if isinstance(v, (str, Enum)):
            return frozenset([_plain(v)])
        return frozenset(_plain(item) for item in v)

    @field_validator("data")
    @classmethod
    def freeze_data(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        """Wrap data in a read-only view over a private copy."""
        return MappingProxyType(dict(v))

    @field_serializer("data")
    def serialize_data(self, v: Mapping[str, str]) -> Dict[str, str]:
        return dict(v)

    def unique_recipients(self) -> Tuple[str, ...]:
        """Recipient ids with duplicates removed, first occurrence wins."""
        return tuple(dict.fromkeys(self.recipients))


class RecipientContact(BaseModel):
    """Delivery addresses for one recipient.

    Owned by the recipient directory; dispatch only holds a read-only copy.
    """

    recipient_id: str
    push_token: Optional[str] = None
    phone_number: str = ""

    model_config = {"frozen": True}

    @field_validator("push_token")
    @classmethod
    def blank_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat whitespace-only tokens as absent."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("phone_number", mode="before")
    @classmethod
    def strip_phone(cls, v: Optional[str]) -> str:
        """Normalise missing phone numbers to the empty string."""
        return (v or "").strip()


class NotificationRecord(BaseModel):
    """A persisted notification."""

    id: str
    created_at: datetime
    notification: Notification

    def to_dict(self) -> Dict:
        """Serialise for API/CLI output."""
        notification = self.notification
        return {
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "type": notification.type,
            "channels": sorted(notification.channels),
            "to": list(notification.recipients),
            "title": notification.title,
            "body": notification.body,
            "smsMessage": notification.sms_message,
            "data": dict(notification.data),
        }
