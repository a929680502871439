"""Unit tests for the Expo push adapter."""

import pytest
import requests

from notifier.channels import (
    ChannelConfigurationError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
    PushAdapter,
    is_valid_push_token,
)
from notifier.domain.models import Notification, RecipientContact
from tests.helpers import mock_response, mock_session

API_URL = "https://exp.host/--/api/v2/push/send"
TOKEN_U1 = "ExponentPushToken[aaaa1111]"
TOKEN_U3 = "ExpoPushToken[cccc3333]"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def notification():
    return Notification(
        type="event-updated",
        channels=["push"],
        recipients=["U1", "U2", "U3"],
        title="Event updated",
        body="The venue changed",
        data={"eventId": "evt_42"},
    )


@pytest.fixture
def contacts():
    return [
        RecipientContact(recipient_id="U1", push_token=TOKEN_U1),
        RecipientContact(recipient_id="U2", push_token=None),
        RecipientContact(recipient_id="U3", push_token=TOKEN_U3),
    ]


def ok_response():
    return mock_response(200, {"data": [{"status": "ok", "id": "t1"}, {"status": "ok", "id": "t2"}]})


# ============================================================================
# Token validation
# ============================================================================


class TestPushTokenValidation:
    """Tests for is_valid_push_token."""

    @pytest.mark.parametrize("token", [TOKEN_U1, TOKEN_U3, "ExponentPushToken[xXy-_z9]"])
    def test_valid_tokens(self, token):
        assert is_valid_push_token(token)

    @pytest.mark.parametrize(
        "token",
        [None, "", "abc", "ExponentPushToken[]", "ExponentPushToken[a b]", "FcmToken[abc]"],
    )
    def test_invalid_tokens(self, token):
        assert not is_valid_push_token(token)


# ============================================================================
# Construction
# ============================================================================


class TestPushAdapterInit:
    """Tests for adapter construction."""

    def test_defaults(self):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)

        assert adapter.channel == "push"
        assert adapter.api_url == API_URL
        assert session.headers["User-Agent"] == "NotificationDispatch/1.0"

    @pytest.mark.parametrize("timeout", [0, 4, 301])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(ChannelConfigurationError, match="Timeout"):
            PushAdapter(timeout=timeout, session=mock_session())

    def test_empty_user_agent(self):
        with pytest.raises(ChannelConfigurationError, match="user_agent"):
            PushAdapter(user_agent="  ", session=mock_session())

    def test_applies_to_every_notification(self, notification):
        adapter = PushAdapter(session=mock_session())

        assert adapter.applies_to(notification)


# ============================================================================
# Sending
# ============================================================================


class TestPushAdapterSend:
    """Tests for PushAdapter.send."""

    def test_missing_token_reported_and_batch_sent_for_rest(self, notification, contacts):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert failures == {"U2": "failed to get push token"}
        session.request.assert_called_once()
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == API_URL
        assert kwargs["json"] == {
            "to": [TOKEN_U1, TOKEN_U3],
            "title": "Event updated",
            "body": "The venue changed",
            "data": {"eventId": "evt_42"},
            "sound": "default",
            "priority": "default",
        }
        assert kwargs["timeout"] == 30

    def test_single_valid_token_scenario(self, notification):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)
        contacts = [
            RecipientContact(recipient_id="U1", push_token=TOKEN_U1),
            RecipientContact(recipient_id="U2"),
        ]

        failures = adapter.send(contacts, notification)

        assert failures == {"U2": "failed to get push token"}
        assert session.request.call_args.kwargs["json"]["to"] == [TOKEN_U1]

    def test_malformed_token_is_reported(self, notification):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)

        failures = adapter.send(
            [RecipientContact(recipient_id="U9", push_token="not-a-token")], notification
        )

        assert failures == {"U9": "failed to get push token"}
        session.request.assert_not_called()

    def test_no_tokens_means_no_provider_call(self, notification):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)

        failures = adapter.send([RecipientContact(recipient_id="U2")], notification)

        assert failures == {"U2": "failed to get push token"}
        session.request.assert_not_called()

    def test_access_token_sent_as_bearer(self, notification, contacts):
        session = mock_session(ok_response())
        adapter = PushAdapter(access_token="secret", session=session)

        adapter.send(contacts, notification)

        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"
        assert headers["Content-Type"] == "application/json"

    def test_no_authorization_header_without_access_token(self, notification, contacts):
        session = mock_session(ok_response())
        adapter = PushAdapter(session=session)

        adapter.send(contacts, notification)

        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_http_error_recorded_as_general(self, notification, contacts):
        session = mock_session(
            mock_response(503, {"errors": [{"code": "UNAVAILABLE", "message": "service down"}]})
        )
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert failures == {
            "U2": "failed to get push token",
            "general": "failed to send push: HTTP 503: service down",
        }

    def test_timeout_recorded_as_general(self, notification, contacts):
        session = mock_session(side_effect=requests.exceptions.Timeout("slow"))
        adapter = PushAdapter(timeout=10, session=session)

        failures = adapter.send(contacts, notification)

        assert failures["general"] == "failed to send push: request timed out after 10 seconds"

    def test_connection_error_recorded_as_general(self, notification, contacts):
        session = mock_session(side_effect=requests.exceptions.ConnectionError("refused"))
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert failures["general"].startswith("failed to send push: request failed")

    def test_request_level_errors_in_body_recorded_as_general(self, notification, contacts):
        session = mock_session(
            mock_response(200, {"errors": [{"code": "PUSH_TOO_MANY", "message": "too many"}]})
        )
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert failures["general"] == "failed to send push: provider rejected request: too many"

    def test_ticket_errors_are_not_reported(self, notification, contacts):
        session = mock_session(
            mock_response(
                200,
                {"data": [{"status": "ok"}, {"status": "error", "message": "DeviceNotRegistered"}]},
            )
        )
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert failures == {"U2": "failed to get push token"}

    def test_invalid_json_recorded_as_general(self, notification, contacts):
        session = mock_session(mock_response(200, ValueError("no json"), content=b"<html>"))
        adapter = PushAdapter(session=session)

        failures = adapter.send(contacts, notification)

        assert "invalid JSON response" in failures["general"]


class TestPushAdapterInternals:
    """Tests for the shared HTTP helper as used by the push adapter."""

    def test_http_error_carries_status(self):
        adapter = PushAdapter(session=mock_session(mock_response(400, {"message": "bad"})))

        with pytest.raises(ProviderHTTPError) as exc_info:
            adapter._make_request(API_URL, json_data={})

        assert exc_info.value.status_code == 400
        assert exc_info.value.url == API_URL
        assert str(exc_info.value) == "HTTP 400: bad"

    def test_timeout_error(self):
        adapter = PushAdapter(session=mock_session(side_effect=requests.exceptions.Timeout()))

        with pytest.raises(ProviderTimeoutError):
            adapter._make_request(API_URL)

    def test_empty_body_returns_empty_dict(self):
        adapter = PushAdapter(session=mock_session(mock_response(200, content=b"")))

        assert adapter._make_request(API_URL) == {}

    def test_non_dict_response_rejected(self):
        adapter = PushAdapter(session=mock_session())

        with pytest.raises(ProviderResponseError):
            adapter._check_response(["not", "a", "dict"], 1)
