"""Persistence layer for notification records and recipient contacts.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repositories (session-scoped, never commit)
    - NotificationRepository: save/get/list notification records
    - ContactRepository: bulk contact lookup and upsert

    # Store used by the dispatcher (commits its own session)
    - NotificationStore / SQLNotificationStore

Example usage:
    >>> from notifier.persistence import init_database, SQLNotificationStore
    >>> init_database("sqlite:///./data/notifications.db")
    >>> store = SQLNotificationStore()
    >>> notification_id = store.save(notification)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import ContactRepository, NotificationFilter, NotificationRepository
from .store import NotificationStore, SQLNotificationStore

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "NotificationRepository",
    "ContactRepository",
    "NotificationFilter",
    # Store
    "NotificationStore",
    "SQLNotificationStore",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
