"""Database schema definition and ORM models.

ORM models convert to and from the domain models in notifier.domain.models;
repositories never hand ORM instances to callers.
"""

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

from notifier.domain.models import Notification, NotificationRecord, RecipientContact

logger = logging.getLogger(__name__)

Base = declarative_base()


class NotificationModel(Base):
    """ORM model for the notifications table."""

    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, nullable=False)
    type = Column(String(64), nullable=False)
    # JSON-encoded sorted list of channel names
    channels = Column(Text, nullable=False)
    title = Column(Text, nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    sms_message = Column(Text, nullable=False, default="")
    # JSON-encoded string mapping
    data = Column(Text, nullable=False, default="{}")
    created_at = Column(String(50), nullable=False)

    recipients = relationship(
        "NotificationRecipientModel",
        order_by="NotificationRecipientModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_notifications_created_at", "created_at"),
        Index("idx_notifications_type", "type"),
    )

    def to_domain(self) -> NotificationRecord:
        """Convert to a NotificationRecord."""
        notification = Notification(
            type=self.type,
            channels=json.loads(self.channels),
            recipients=[row.recipient_id for row in self.recipients],
            title=self.title,
            body=self.body,
            sms_message=self.sms_message,
            data=json.loads(self.data),
        )
        return NotificationRecord(
            id=self.id,
            created_at=_parse_datetime(self.created_at),
            notification=notification,
        )

    @classmethod
    def from_domain(
        cls, notification_id: str, notification: Notification, created_at: datetime
    ) -> "NotificationModel":
        """Build a row (with its recipient rows) from a notification."""
        model = cls(
            id=notification_id,
            type=notification.type,
            channels=json.dumps(sorted(notification.channels)),
            title=notification.title,
            body=notification.body,
            sms_message=notification.sms_message,
            data=json.dumps(dict(notification.data), sort_keys=True),
            created_at=_format_datetime(created_at),
        )
        model.recipients = _recipient_rows(notification.recipients)
        return model


class NotificationRecipientModel(Base):
    """ORM model for notification_recipients.

    One row per entry in Notification.recipients, duplicates included, so
    the original order can be rebuilt and notifications listed by recipient.
    """

    __tablename__ = "notification_recipients"

    notification_id = Column(
        String(32),
        ForeignKey("notifications.id", ondelete="CASCADE"),
        primary_key=True,
        nullable=False,
    )
    position = Column(Integer, primary_key=True, nullable=False)
    recipient_id = Column(String(255), nullable=False)

    __table_args__ = (Index("idx_notification_recipients_recipient", "recipient_id"),)


class ContactModel(Base):
    """ORM model for the contacts table backing the SQL recipient directory."""

    __tablename__ = "contacts"

    recipient_id = Column(String(255), primary_key=True, nullable=False)
    push_token = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=False, default="")

    def to_domain(self) -> RecipientContact:
        return RecipientContact(
            recipient_id=self.recipient_id,
            push_token=self.push_token,
            phone_number=self.phone_number or "",
        )

    @classmethod
    def from_domain(cls, contact: RecipientContact) -> "ContactModel":
        return cls(
            recipient_id=contact.recipient_id,
            push_token=contact.push_token,
            phone_number=contact.phone_number,
        )


def _recipient_rows(recipients) -> List[NotificationRecipientModel]:
    return [
        NotificationRecipientModel(position=position, recipient_id=recipient_id)
        for position, recipient_id in enumerate(recipients)
    ]


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string with a Z suffix."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a string written by _format_datetime back to an aware datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
