"""Dispatch orchestrator: validate, persist, resolve, fan out, report.

Only three things abort a dispatch: a malformed notification, a failed
save, or an unreachable recipient directory. Everything after that is
best-effort and ends up in the ErrorReport.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Mapping, Optional, Union

from notifier.channels.base import ChannelAdapter
from notifier.directory.base import RecipientDirectory
from notifier.directory.exceptions import DirectoryError, DirectoryUnavailableError
from notifier.domain.models import Notification, NotificationRecord, RecipientContact
from notifier.logging import get_logger
from notifier.logging.context import log_context, run_with_context
from notifier.persistence.repositories import NotificationFilter
from notifier.persistence.store import NotificationStore

from .exceptions import MalformedNotificationError
from .models import DispatchOutcome
from .report import ErrorReport
from .validator import validate

logger = get_logger(__name__, component="dispatch")

UNRESOLVED_CONTACT = "failed to resolve contact"
CHANNEL_NOT_CONFIGURED = "channel not configured"


class Dispatcher:
    """Fans a notification out to every requested channel.

    Flow for one dispatch:
    1. Validate (MalformedNotificationError, nothing persisted)
    2. Save through the store (its errors propagate unchanged)
    3. Resolve recipients (DirectoryUnavailableError if the lookup fails);
       unknown recipients are reported per channel and skipped
    4. Run each applicable channel adapter, in parallel
    5. Merge adapter failures into a fresh ErrorReport

    Channel adapters are looked up by channel name; the dispatcher has no
    knowledge of individual providers.
    """

    def __init__(
        self,
        store: NotificationStore,
        directory: RecipientDirectory,
        adapters: Union[Mapping[str, ChannelAdapter], Iterable[ChannelAdapter]],
        max_channel_workers: int = 2,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Args:
            store: Persistence collaborator for notification records
            directory: Recipient directory client
            adapters: Channel adapters, as a name->adapter mapping or an
                iterable of adapters keyed by their ``channel`` attribute
            max_channel_workers: Threads used to run adapters concurrently
            logger_instance: Logger (uses module logger if None)
        """
        if isinstance(adapters, Mapping):
            self.adapters: Dict[str, ChannelAdapter] = dict(adapters)
        else:
            self.adapters = {adapter.channel: adapter for adapter in adapters}

        self.store = store
        self.directory = directory
        self.max_channel_workers = max(1, max_channel_workers)
        self.logger = logger_instance or logger

    def dispatch(self, notification: Notification) -> DispatchOutcome:
        """Deliver a notification through every requested channel.

        Args:
            notification: Notification to deliver (never modified)

        Returns:
            DispatchOutcome with the new notification id and the error report

        Raises:
            MalformedNotificationError: If validation fails
            PersistenceError: If the record cannot be saved
            DirectoryUnavailableError: If recipients cannot be resolved at all
        """
        if not validate(notification):
            self.logger.warning(
                "Rejected malformed notification",
                extra={
                    "event": "dispatch.rejected",
                    "notification_type": notification.type,
                    "channels": sorted(notification.channels),
                    "recipient_count": len(notification.recipients),
                },
            )
            raise MalformedNotificationError()

        notification_id = self.store.save(notification)

        with log_context(notification_id=notification_id, notification_type=notification.type):
            self.logger.info(
                f"Created notification {notification_id}",
                extra={
                    "event": "dispatch.started",
                    "channels": sorted(notification.channels),
                    "recipient_count": len(notification.recipients),
                },
            )

            contacts_by_id = self._resolve(notification)
            report = ErrorReport()
            adapters = self._select_adapters(notification, report)

            unresolved = [
                recipient_id
                for recipient_id in notification.unique_recipients()
                if recipient_id not in contacts_by_id
            ]
            for recipient_id in unresolved:
                for adapter in adapters:
                    report.record(adapter.channel, recipient_id, UNRESOLVED_CONTACT)

            # Original order, duplicates included: every entry is attempted
            contacts = [
                contacts_by_id[recipient_id]
                for recipient_id in notification.recipients
                if recipient_id in contacts_by_id
            ]

            if adapters and contacts:
                self._fan_out(adapters, contacts, notification, report)

            errors = report.to_dict()
            self.logger.info(
                f"Notification {notification_id} dispatched"
                + (" with failures" if errors else ""),
                extra={
                    "event": "dispatch.completed",
                    "unresolved": len(unresolved),
                    "failed_channels": sorted(errors),
                    "failure_count": sum(len(entries) for entries in errors.values()),
                },
            )

        return DispatchOutcome(notification_id=notification_id, report=report)

    def list_notifications(
        self, notification_filter: Optional[NotificationFilter] = None
    ) -> List[NotificationRecord]:
        """Stored notifications matching the filter, newest first."""
        return self.store.list(notification_filter)

    def _resolve(self, notification: Notification) -> Dict[str, RecipientContact]:
        """Bulk-resolve unique recipient ids.

        Raises:
            DirectoryUnavailableError: If the directory lookup fails as a whole
        """
        recipient_ids = list(notification.unique_recipients())
        try:
            return dict(self.directory.resolve(recipient_ids))
        except DirectoryError:
            raise
        except Exception as e:
            self.logger.error(
                f"Recipient directory lookup raised {type(e).__name__}: {e}",
                exc_info=True,
                extra={"event": "dispatch.directory.failed"},
            )
            raise DirectoryUnavailableError(f"recipient directory unavailable: {e}") from e

    def _select_adapters(
        self, notification: Notification, report: ErrorReport
    ) -> List[ChannelAdapter]:
        """Adapters that will run for this notification, in channel name order."""
        selected = []
        for channel in sorted(notification.channels):
            adapter = self.adapters.get(channel)
            if adapter is None:
                self.logger.warning(
                    f"No adapter registered for channel {channel}",
                    extra={"event": "dispatch.channel.unconfigured", "channel": channel},
                )
                report.record_general(channel, CHANNEL_NOT_CONFIGURED)
                continue

            if not adapter.applies_to(notification):
                self.logger.debug(
                    f"Channel {channel} has nothing to send, skipping",
                    extra={"event": "dispatch.channel.skipped", "channel": channel},
                )
                continue

            selected.append(adapter)
        return selected

    def _fan_out(
        self,
        adapters: List[ChannelAdapter],
        contacts: List[RecipientContact],
        notification: Notification,
        report: ErrorReport,
    ) -> None:
        """Run adapters concurrently and merge their failures into report."""
        workers = min(self.max_channel_workers, len(adapters))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="channel") as executor:
            futures = {
                executor.submit(run_with_context(adapter.send), contacts, notification): adapter
                for adapter in adapters
            }

            for future in as_completed(futures):
                adapter = futures[future]
                try:
                    failures = future.result()
                except Exception as e:
                    # Provider failures come back as PartialFailures; anything
                    # raised here stays confined to its own channel.
                    self.logger.error(
                        f"Channel {adapter.channel} raised {type(e).__name__}: {e}",
                        exc_info=True,
                        extra={"event": "dispatch.channel.crashed", "channel": adapter.channel},
                    )
                    report.record_general(adapter.channel, f"unexpected error: {e}")
                    continue

                report.merge(adapter.channel, failures)
