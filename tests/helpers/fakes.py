"""In-memory collaborators for dispatcher tests.

These stand in for the SQL store, the contact directory and real provider
adapters so tests can count calls and script failures without a database
or network.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from unittest.mock import MagicMock

from notifier.channels.base import ChannelAdapter, PartialFailures
from notifier.directory.base import RecipientDirectory
from notifier.directory.exceptions import DirectoryUnavailableError
from notifier.domain.models import Notification, NotificationRecord, RecipientContact
from notifier.persistence.exceptions import PersistenceError
from notifier.persistence.store import NotificationStore


class InMemoryStore(NotificationStore):
    """Store that keeps records in a list; can be told to fail."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.records: List[NotificationRecord] = []

    def save(self, notification: Notification) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        notification_id = uuid.uuid4().hex
        self.records.append(
            NotificationRecord(
                id=notification_id,
                created_at=datetime.now(timezone.utc),
                notification=notification,
            )
        )
        return notification_id

    def list(self, notification_filter=None) -> List[NotificationRecord]:
        records = list(reversed(self.records))
        if notification_filter and notification_filter.recipient_id:
            records = [
                r for r in records
                if notification_filter.recipient_id in r.notification.recipients
            ]
        return records


class FakeDirectory(RecipientDirectory):
    """Directory over a dict of contacts; records every lookup."""

    def __init__(self, contacts: Sequence[RecipientContact] = (), available: bool = True):
        self.contacts = {contact.recipient_id: contact for contact in contacts}
        self.available = available
        self.calls: List[List[str]] = []

    def resolve(self, recipient_ids):
        self.calls.append(list(recipient_ids))
        if not self.available:
            raise DirectoryUnavailableError("directory unreachable: connection refused")
        return {rid: self.contacts[rid] for rid in recipient_ids if rid in self.contacts}


class RecordingAdapter(ChannelAdapter):
    """Adapter that records calls and returns scripted failures."""

    def __init__(
        self,
        channel: str,
        failures: Optional[PartialFailures] = None,
        raises: Optional[Exception] = None,
        applies: bool = True,
    ):
        self.channel = channel
        self.failures = failures or {}
        self.raises = raises
        self.applies = applies
        self.calls: List[List[RecipientContact]] = []
        self._lock = threading.Lock()

    def applies_to(self, notification: Notification) -> bool:
        return self.applies

    def send(self, contacts, notification) -> PartialFailures:
        with self._lock:
            self.calls.append(list(contacts))
        if self.raises is not None:
            raise self.raises
        return dict(self.failures)


def persistence_failure() -> PersistenceError:
    return PersistenceError("Failed to save notification: database is locked")


def mock_response(status_code: int = 200, json_body=None, reason: str = "OK", content: bytes = b"{}"):
    """Build a MagicMock shaped like requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.content = content
    if isinstance(json_body, Exception):
        response.json.side_effect = json_body
    else:
        response.json.return_value = json_body if json_body is not None else {}
    return response


def mock_session(*responses, side_effect=None) -> MagicMock:
    """Build a MagicMock session whose request() returns responses in order."""
    session = MagicMock()
    session.headers = {}
    if side_effect is not None:
        session.request.side_effect = side_effect
    elif len(responses) == 1:
        session.request.return_value = responses[0]
    else:
        session.request.side_effect = list(responses)
    return session
