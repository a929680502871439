"""Notification store used by the dispatcher.

The dispatcher only needs ``save`` and ``list``; this module defines that
boundary and a SQLAlchemy-backed implementation on top of the repositories.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from notifier.domain.models import Notification, NotificationRecord
from notifier.logging import get_logger

from .database import get_session
from .exceptions import PersistenceError
from .repositories import NotificationFilter, NotificationRepository

logger = get_logger(__name__, component="store")


class NotificationStore(ABC):
    """Persistence collaborator for dispatched notifications."""

    @abstractmethod
    def save(self, notification: Notification) -> str:
        """Durably record a notification and return its id.

        Raises:
            PersistenceError: If the record could not be saved
        """

    @abstractmethod
    def list(self, notification_filter: Optional[NotificationFilter] = None) -> List[NotificationRecord]:
        """Return stored notifications matching the filter, newest first."""


class SQLNotificationStore(NotificationStore):
    """Store backed by the module-level SQLAlchemy session factory.

    ``save`` commits in its own session, so the record exists before the
    dispatcher attempts any delivery. Database errors raised at flush or
    commit time surface as PersistenceError.
    """

    def save(self, notification: Notification) -> str:
        try:
            with get_session() as session:
                record = NotificationRepository(session).save(notification)
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to commit notification: {e}",
                extra={"event": "store.notification.save_failed", "error_type": type(e).__name__},
            )
            raise PersistenceError(f"Failed to save notification: {e}") from e

        logger.debug(
            f"Stored notification {record.id}",
            extra={"event": "store.notification.saved", "notification_id": record.id},
        )
        return record.id

    def list(self, notification_filter: Optional[NotificationFilter] = None) -> List[NotificationRecord]:
        try:
            with get_session() as session:
                return NotificationRepository(session).list_notifications(notification_filter)
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to list notifications: {e}",
                extra={"event": "store.notification.list_failed", "error_type": type(e).__name__},
            )
            raise PersistenceError(f"Failed to list notifications: {e}") from e
