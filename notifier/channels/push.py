"""Expo push notification adapter."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

import requests

from notifier.domain.models import Channel, Notification, RecipientContact
from notifier.logging import get_logger

from .base import GENERAL_KEY, HTTPChannelAdapter, PartialFailures
from .exceptions import ChannelError, ProviderResponseError

logger = get_logger(__name__, component="channel")

_PUSH_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[[^\[\]\s]+\]$")

DEFAULT_SOUND = "default"
DEFAULT_PRIORITY = "default"


def is_valid_push_token(token: Optional[str]) -> bool:
    """Check a token has the Expo ``ExponentPushToken[...]`` shape."""
    return bool(token) and bool(_PUSH_TOKEN_PATTERN.match(token))


class PushAdapter(HTTPChannelAdapter):
    """Sends one batched message to the Expo push API.

    Recipients without a well-formed token are reported individually and
    left out of the batch. A failed batch is reported once under "general";
    per-token tickets in a successful response are logged, not reported.

    API Details:
        Endpoint: https://exp.host/--/api/v2/push/send
        Method: POST (JSON)
        Authentication: optional Bearer access token
        Response: {"data": [ticket, ...]} or {"errors": [...]}
    """

    channel = Channel.PUSH.value

    def __init__(
        self,
        api_url: str = "https://exp.host/--/api/v2/push/send",
        access_token: Optional[str] = None,
        timeout: int = 30,
        user_agent: str = "NotificationDispatch/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent, session=session)
        self.api_url = api_url
        self.access_token = access_token

    def send(
        self, contacts: Sequence[RecipientContact], notification: Notification
    ) -> PartialFailures:
        failures: PartialFailures = {}
        tokens: List[str] = []

        for contact in contacts:
            if is_valid_push_token(contact.push_token):
                tokens.append(contact.push_token)
            else:
                failures[contact.recipient_id] = "failed to get push token"

        if not tokens:
            logger.info(
                "No valid push tokens, skipping provider call",
                extra={"event": "push.send.skipped", "invalid_tokens": len(failures)},
            )
            return failures

        message = {
            "to": tokens,
            "title": notification.title,
            "body": notification.body,
            "data": dict(notification.data),
            "sound": DEFAULT_SOUND,
            "priority": DEFAULT_PRIORITY,
        }

        try:
            response = self._make_request(
                self.api_url, method="POST", headers=self._headers(), json_data=message
            )
            self._check_response(response, len(tokens))
        except ChannelError as e:
            failures[GENERAL_KEY] = f"failed to send push: {e}"
            logger.error(
                f"Push batch failed: {e}",
                extra={
                    "event": "push.send.failure",
                    "token_count": len(tokens),
                    "error_type": type(e).__name__,
                },
            )
            return failures

        logger.info(
            f"Push batch accepted for {len(tokens)} tokens",
            extra={
                "event": "push.send.success",
                "token_count": len(tokens),
                "invalid_tokens": len(failures),
            },
        )
        return failures

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _check_response(self, response: Any, token_count: int) -> None:
        """Raise for request-level errors; log ticket-level ones.

        Raises:
            ProviderResponseError: If the response reports request errors
        """
        if not isinstance(response, dict):
            raise ProviderResponseError(
                f"expected JSON object response, got {type(response).__name__}"
            )

        errors = response.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            detail = first.get("message", first) if isinstance(first, dict) else first
            raise ProviderResponseError(f"provider rejected request: {detail}")

        tickets = response.get("data")
        if isinstance(tickets, dict):
            tickets = [tickets]
        if not isinstance(tickets, list):
            return

        rejected = [t for t in tickets if isinstance(t, dict) and t.get("status") == "error"]
        if rejected:
            logger.warning(
                f"{len(rejected)} of {token_count} push tickets reported errors",
                extra={
                    "event": "push.send.ticket_errors",
                    "rejected": len(rejected),
                    "first_error": rejected[0].get("message"),
                },
            )
