"""Data access layer (repositories) for persistence operations.

Repositories work inside the caller's session and never commit; they return
domain models rather than ORM models.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from notifier.domain.models import Notification, NotificationRecord, RecipientContact
from notifier.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import ContactModel, NotificationModel, NotificationRecipientModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationFilter:
    """Criteria for listing stored notifications.

    Attributes:
        recipient_id: Only notifications addressed to this recipient
        type: Only notifications of this type
        limit: Maximum rows returned (newest first); None for no limit
    """

    recipient_id: Optional[str] = None
    type: Optional[str] = None
    limit: Optional[int] = 100


class NotificationRepository:
    """Repository for notification records."""

    def __init__(self, session: Session):
        self.session = session

    def save(
        self, notification: Notification, created_at: Optional[datetime] = None
    ) -> NotificationRecord:
        """Insert a new notification record.

        Every call creates a new row; identical notifications are not
        de-duplicated.

        Args:
            notification: Notification to persist
            created_at: Creation time (defaults to now, UTC)

        Returns:
            The persisted NotificationRecord, including its generated id

        Raises:
            DataIntegrityError: On constraint violations
            PersistenceError: On any other database error
        """
        notification_id = uuid.uuid4().hex
        try:
            model = NotificationModel.from_domain(
                notification_id, notification, created_at or utc_now()
            )
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error saving notification {notification_id}: {e}")
            raise DataIntegrityError(f"Failed to save notification: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save notification: {e}") from e

    def get(self, notification_id: str) -> NotificationRecord:
        """Fetch a notification by id.

        Raises:
            RecordNotFoundError: If no such notification exists
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(NotificationModel, notification_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notification: {e}") from e

        if model is None:
            raise RecordNotFoundError(f"Notification not found: {notification_id}")
        return model.to_domain()

    def list_notifications(
        self, notification_filter: Optional[NotificationFilter] = None
    ) -> List[NotificationRecord]:
        """List notifications matching a filter, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        criteria = notification_filter or NotificationFilter()
        try:
            stmt = select(NotificationModel)

            if criteria.recipient_id is not None:
                addressed = (
                    select(NotificationRecipientModel.notification_id)
                    .where(NotificationRecipientModel.recipient_id == criteria.recipient_id)
                )
                stmt = stmt.where(NotificationModel.id.in_(addressed))

            if criteria.type is not None:
                stmt = stmt.where(NotificationModel.type == criteria.type)

            stmt = stmt.order_by(NotificationModel.created_at.desc())
            if criteria.limit is not None:
                stmt = stmt.limit(criteria.limit)

            models = self.session.execute(stmt).scalars().all()
            return [model.to_domain() for model in models]

        except SQLAlchemyError as e:
            logger.error(f"Error listing notifications: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list notifications: {e}") from e


class ContactRepository:
    """Repository for recipient contact records."""

    def __init__(self, session: Session):
        self.session = session

    def get_many(self, recipient_ids: Iterable[str]) -> Dict[str, RecipientContact]:
        """Bulk lookup of contacts by recipient id.

        Unknown ids are simply absent from the result.

        Raises:
            PersistenceError: If database error occurs
        """
        ids = list(dict.fromkeys(recipient_ids))
        if not ids:
            return {}

        try:
            stmt = select(ContactModel).where(ContactModel.recipient_id.in_(ids))
            models = self.session.execute(stmt).scalars().all()
            return {model.recipient_id: model.to_domain() for model in models}
        except SQLAlchemyError as e:
            logger.error(f"Error resolving {len(ids)} contacts: {e}", exc_info=True)
            raise PersistenceError(f"Failed to resolve contacts: {e}") from e

    def upsert(self, contact: RecipientContact) -> RecipientContact:
        """Insert or replace a contact.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(ContactModel, contact.recipient_id)
            if existing:
                existing.push_token = contact.push_token
                existing.phone_number = contact.phone_number
                self.session.flush()
                return existing.to_domain()

            model = ContactModel.from_domain(contact)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error saving contact {contact.recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save contact: {e}") from e
