"""Recipient directory backed by the contacts table."""

from typing import Dict, Sequence

from sqlalchemy.exc import SQLAlchemyError

from notifier.domain.models import RecipientContact
from notifier.logging import get_logger
from notifier.persistence.database import get_session
from notifier.persistence.exceptions import PersistenceError
from notifier.persistence.repositories import ContactRepository

from .base import RecipientDirectory
from .exceptions import DirectoryUnavailableError

logger = get_logger(__name__, component="directory")


class SQLRecipientDirectory(RecipientDirectory):
    """Resolves contacts with ContactRepository in a short-lived session."""

    def resolve(self, recipient_ids: Sequence[str]) -> Dict[str, RecipientContact]:
        try:
            with get_session() as session:
                contacts = ContactRepository(session).get_many(recipient_ids)
        except (PersistenceError, SQLAlchemyError) as e:
            logger.error(
                f"Recipient directory lookup failed: {e}",
                extra={"event": "directory.lookup.failed", "error_type": type(e).__name__},
            )
            raise DirectoryUnavailableError(f"recipient directory unavailable: {e}") from e

        missing = len(set(recipient_ids) - contacts.keys())
        logger.debug(
            f"Resolved {len(contacts)} of {len(recipient_ids)} recipients",
            extra={
                "event": "directory.lookup.completed",
                "resolved": len(contacts),
                "missing": missing,
            },
        )
        return contacts
