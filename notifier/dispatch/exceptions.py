"""Fatal dispatch errors.

Only these (plus PersistenceError from the store) escape Dispatcher.dispatch.
DirectoryUnavailableError also derives from DispatchError. Per-recipient and
per-channel delivery failures never raise; they are recorded in the
ErrorReport instead.
"""

from notifier.exceptions import DispatchError


class MalformedNotificationError(DispatchError):
    """The notification failed validation; nothing was persisted or sent."""

    def __init__(self, message: str = "malformed request body") -> None:
        super().__init__(message)
