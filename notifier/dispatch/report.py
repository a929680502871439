"""Per-dispatch accumulation of delivery failures."""

import threading
from typing import Dict, Mapping

from notifier.channels.base import GENERAL_KEY


class ErrorReport:
    """Channel -> recipient id (or "general") -> failure reason.

    Created fresh for every dispatch and safe to write from several worker
    threads. Entries are append-only; recording the same channel/recipient
    twice keeps the first reason. A pair that is absent means the attempt
    succeeded or was never required.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._failures: Dict[str, Dict[str, str]] = {}

    def record(self, channel: str, recipient_id: str, reason: str) -> None:
        """Record one failure."""
        with self._lock:
            self._failures.setdefault(channel, {}).setdefault(recipient_id, reason)

    def record_general(self, channel: str, reason: str) -> None:
        """Record a channel-wide failure not attributable to one recipient."""
        self.record(channel, GENERAL_KEY, reason)

    def merge(self, channel: str, failures: Mapping[str, str]) -> None:
        """Record every entry of an adapter's PartialFailures under channel."""
        if not failures:
            return
        with self._lock:
            bucket = self._failures.setdefault(channel, {})
            for recipient_id, reason in failures.items():
                bucket.setdefault(recipient_id, reason)

    def failures_for(self, channel: str) -> Dict[str, str]:
        """Copy of one channel's failures (empty if none)."""
        with self._lock:
            return dict(self._failures.get(channel, {}))

    @property
    def has_failures(self) -> bool:
        with self._lock:
            return any(self._failures.values())

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        """Serialise, omitting channels without failures.

        An empty dict means every requested delivery succeeded.
        """
        with self._lock:
            return {
                channel: dict(entries)
                for channel, entries in self._failures.items()
                if entries
            }

    def __repr__(self) -> str:
        return f"ErrorReport({self.to_dict()!r})"
