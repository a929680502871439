"""Unit tests for the dispatch orchestrator.

Tests the Dispatcher for:
- Validation before any side effect
- Persistence and directory failures aborting the dispatch
- Unresolved recipients reported per channel
- Channel selection (unknown adapters, applies_to)
- Merging adapter failures and isolating adapter crashes
"""

import threading

import pytest

from notifier.directory.exceptions import DirectoryUnavailableError
from notifier.dispatch import (
    Dispatcher,
    DispatchError,
    DispatchOutcome,
    MalformedNotificationError,
)
from notifier.dispatch.orchestrator import CHANNEL_NOT_CONFIGURED, UNRESOLVED_CONTACT
from notifier.domain.models import Channel, Notification, NotificationType, RecipientContact
from notifier.logging.context import get_log_context
from notifier.persistence.exceptions import PersistenceError
from notifier.persistence.repositories import NotificationFilter
from tests.helpers import (
    FakeDirectory,
    InMemoryStore,
    RecordingAdapter,
    persistence_failure,
)

TOKEN_U1 = "ExponentPushToken[aaaa1111]"


@pytest.fixture
def contacts():
    return [
        RecipientContact(recipient_id="U1", push_token=TOKEN_U1, phone_number="555-0100"),
        RecipientContact(recipient_id="U2", push_token=None, phone_number="555-0101"),
        RecipientContact(recipient_id="U3", push_token="ExponentPushToken[cccc3333]"),
    ]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def directory(contacts):
    return FakeDirectory(contacts)


def make_notification(**overrides):
    values = {
        "type": NotificationType.EVENT_UPDATED,
        "channels": [Channel.PUSH],
        "recipients": ["U1"],
        "title": "Event updated",
        "body": "The venue changed",
    }
    values.update(overrides)
    return Notification(**values)


class TestValidationGate:
    """Malformed notifications are rejected before anything happens."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"recipients": []},
            {"channels": []},
            {"channels": ["email"]},
            {"channels": ["push", "fax"]},
            {"type": "party-invite"},
        ],
    )
    def test_malformed_notification_has_no_side_effects(self, store, directory, overrides):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, [push])

        with pytest.raises(MalformedNotificationError) as exc_info:
            dispatcher.dispatch(make_notification(**overrides))

        assert str(exc_info.value) == "malformed request body"
        assert store.records == []
        assert directory.calls == []
        assert push.calls == []


class TestFatalFailures:
    """Persistence and directory failures abort the dispatch."""

    def test_persistence_failure_propagates_unchanged(self, directory):
        error = persistence_failure()
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(InMemoryStore(fail_with=error), directory, [push])

        with pytest.raises(PersistenceError) as exc_info:
            dispatcher.dispatch(make_notification())

        assert exc_info.value is error
        assert directory.calls == []
        assert push.calls == []

    def test_directory_unavailable_aborts_before_adapters(self, store, contacts):
        directory = FakeDirectory(contacts, available=False)
        push = RecordingAdapter("push")
        sms = RecordingAdapter("sms")
        dispatcher = Dispatcher(store, directory, [push, sms])

        with pytest.raises(DirectoryUnavailableError):
            dispatcher.dispatch(make_notification(channels=["push", "sms"], sms_message="hi"))

        # The notification was already persisted
        assert len(store.records) == 1
        assert push.calls == []
        assert sms.calls == []

    def test_directory_outage_is_a_dispatch_error(self, store, contacts):
        dispatcher = Dispatcher(store, FakeDirectory(contacts, available=False), [RecordingAdapter("push")])

        with pytest.raises(DispatchError) as exc_info:
            dispatcher.dispatch(make_notification())

        assert isinstance(exc_info.value, DirectoryUnavailableError)
        assert not isinstance(exc_info.value, MalformedNotificationError)

    def test_unexpected_directory_error_is_wrapped(self, store):
        class BrokenDirectory(FakeDirectory):
            def resolve(self, recipient_ids):
                raise RuntimeError("socket closed")

        dispatcher = Dispatcher(store, BrokenDirectory(), [RecordingAdapter("push")])

        with pytest.raises(DirectoryUnavailableError) as exc_info:
            dispatcher.dispatch(make_notification())

        assert "socket closed" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestDispatchOutcome:
    """Successful dispatches return the id and the error report."""

    def test_full_success_returns_empty_report(self, store, directory):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, [push])

        outcome = dispatcher.dispatch(make_notification())

        assert isinstance(outcome, DispatchOutcome)
        assert outcome.notification_id == store.records[0].id
        assert outcome.report.to_dict() == {}
        assert outcome.is_full_success()
        assert outcome.to_dict() == {"notificationId": outcome.notification_id, "errors": {}}

    def test_each_dispatch_creates_new_record_and_report(self, store, directory):
        push = RecordingAdapter("push", failures={"U1": "failed to send push: boom"})
        dispatcher = Dispatcher(store, directory, [push])

        first = dispatcher.dispatch(make_notification())
        second = dispatcher.dispatch(make_notification())

        assert first.notification_id != second.notification_id
        assert first.report is not second.report
        assert len(store.records) == 2

    def test_adapter_failures_are_merged_under_channel(self, store, directory):
        push = RecordingAdapter("push", failures={"U2": "failed to get push token"})
        dispatcher = Dispatcher(store, directory, [push])

        outcome = dispatcher.dispatch(make_notification(recipients=["U1", "U2"]))

        assert outcome.report.to_dict() == {"push": {"U2": "failed to get push token"}}
        assert not outcome.is_full_success()

    def test_adapter_receives_contacts_in_recipient_order(self, store, directory):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, [push])

        dispatcher.dispatch(make_notification(recipients=["U3", "U1"]))

        assert [c.recipient_id for c in push.calls[0]] == ["U3", "U1"]

    def test_duplicate_recipients_are_each_attempted(self, store, directory):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, [push])

        dispatcher.dispatch(make_notification(recipients=["U1", "U1"]))

        assert [c.recipient_id for c in push.calls[0]] == ["U1", "U1"]
        # Directory sees each id once
        assert directory.calls == [["U1"]]


class TestUnresolvedRecipients:
    """Recipients missing from the directory are skipped and reported."""

    def test_unresolved_recipient_reported_on_every_running_channel(self, store, directory):
        push = RecordingAdapter("push")
        sms = RecordingAdapter("sms")
        dispatcher = Dispatcher(store, directory, [push, sms])

        outcome = dispatcher.dispatch(
            make_notification(channels=["push", "sms"], recipients=["U1", "ghost"], sms_message="hi")
        )

        assert outcome.report.to_dict() == {
            "push": {"ghost": UNRESOLVED_CONTACT},
            "sms": {"ghost": UNRESOLVED_CONTACT},
        }
        assert [c.recipient_id for c in push.calls[0]] == ["U1"]
        assert [c.recipient_id for c in sms.calls[0]] == ["U1"]

    def test_all_unresolved_means_no_adapter_call(self, store, directory):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, [push])

        outcome = dispatcher.dispatch(make_notification(recipients=["ghost"]))

        assert push.calls == []
        assert outcome.report.to_dict() == {"push": {"ghost": UNRESOLVED_CONTACT}}

    def test_unresolved_not_reported_for_skipped_channel(self, store, directory):
        push = RecordingAdapter("push")
        sms = RecordingAdapter("sms", applies=False)
        dispatcher = Dispatcher(store, directory, [push, sms])

        outcome = dispatcher.dispatch(
            make_notification(channels=["push", "sms"], recipients=["ghost"])
        )

        assert "sms" not in outcome.report.to_dict()


class TestChannelSelection:
    """Only requested, configured and applicable channels run."""

    def test_unrequested_channel_is_never_invoked(self, store, directory):
        push = RecordingAdapter("push")
        sms = RecordingAdapter("sms")
        dispatcher = Dispatcher(store, directory, [push, sms])

        dispatcher.dispatch(make_notification(channels=["push"], sms_message="ignored"))

        assert len(push.calls) == 1
        assert sms.calls == []

    def test_inapplicable_adapter_is_skipped_without_error(self, store, directory):
        sms = RecordingAdapter("sms", applies=False)
        dispatcher = Dispatcher(store, directory, [sms])

        outcome = dispatcher.dispatch(make_notification(channels=["sms"], sms_message=""))

        assert sms.calls == []
        assert outcome.report.to_dict() == {}

    def test_missing_adapter_reports_channel_not_configured(self, store, directory):
        push = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, {"push": push})

        outcome = dispatcher.dispatch(
            make_notification(channels=["push", "sms"], sms_message="hi")
        )

        assert outcome.report.to_dict() == {"sms": {"general": CHANNEL_NOT_CONFIGURED}}
        assert len(push.calls) == 1

    def test_adapters_accepted_as_mapping(self, store, directory):
        custom = RecordingAdapter("push")
        dispatcher = Dispatcher(store, directory, {"push": custom})

        assert dispatcher.adapters == {"push": custom}


class TestAdapterIsolation:
    """A crashing adapter does not affect other channels."""

    def test_adapter_exception_recorded_as_general(self, store, directory):
        push = RecordingAdapter("push", raises=RuntimeError("kaboom"))
        sms = RecordingAdapter("sms", failures={"U1": "failed to send SMS: HTTP 400: bad number"})
        dispatcher = Dispatcher(store, directory, [push, sms])

        outcome = dispatcher.dispatch(
            make_notification(channels=["push", "sms"], sms_message="hi")
        )

        assert outcome.report.to_dict() == {
            "push": {"general": "unexpected error: kaboom"},
            "sms": {"U1": "failed to send SMS: HTTP 400: bad number"},
        }

    def test_channels_run_concurrently(self, store, directory):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierAdapter(RecordingAdapter):
            def send(self, contacts, notification):
                barrier.wait()
                return super().send(contacts, notification)

        push = BarrierAdapter("push")
        sms = BarrierAdapter("sms")
        dispatcher = Dispatcher(store, directory, [push, sms], max_channel_workers=2)

        outcome = dispatcher.dispatch(
            make_notification(channels=["push", "sms"], sms_message="hi")
        )

        assert outcome.report.to_dict() == {}
        assert len(push.calls) == 1
        assert len(sms.calls) == 1

    def test_log_context_visible_inside_adapters(self, store, directory):
        seen = {}

        class ContextAdapter(RecordingAdapter):
            def send(self, contacts, notification):
                seen.update(get_log_context())
                return {}

        dispatcher = Dispatcher(store, directory, [ContextAdapter("push")])
        outcome = dispatcher.dispatch(make_notification())

        assert seen["notification_id"] == outcome.notification_id
        assert seen["notification_type"] == "event-updated"
        assert get_log_context() == {}


class TestListNotifications:
    """Listing delegates to the store."""

    def test_list_notifications_filters_by_recipient(self, store, directory):
        dispatcher = Dispatcher(store, directory, [RecordingAdapter("push")])
        dispatcher.dispatch(make_notification(recipients=["U1"]))
        dispatcher.dispatch(make_notification(recipients=["U3"]))

        records = dispatcher.list_notifications(NotificationFilter(recipient_id="U3"))

        assert [r.notification.recipients for r in records] == [("U3",)]
