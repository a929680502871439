"""Base classes shared by all channel adapters.

A channel adapter knows how to deliver one notification to a list of
resolved contacts over one provider, and reports what went wrong as
PartialFailures rather than raising.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter

from notifier.domain.models import Notification, RecipientContact
from notifier.logging import get_logger

from .exceptions import (
    ChannelConfigurationError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = get_logger(__name__, component="channel")

# recipient id (or GENERAL_KEY) -> human-readable reason
PartialFailures = Dict[str, str]

# Report key for failures that cannot be pinned on one recipient
GENERAL_KEY = "general"


class ChannelAdapter(ABC):
    """Capability: send a notification to contacts over one channel.

    Subclasses set ``channel`` to the name they are registered and reported
    under. New channels are added by subclassing, never by branching in the
    dispatcher.
    """

    channel: str = ""

    def applies_to(self, notification: Notification) -> bool:
        """Whether this adapter has anything to send for the notification.

        Returning False skips the adapter entirely; it is not a failure.
        """
        return True

    @abstractmethod
    def send(
        self, contacts: Sequence[RecipientContact], notification: Notification
    ) -> PartialFailures:
        """Deliver the notification to each contact.

        Must not raise for delivery problems: every failure is returned,
        keyed by recipient id or GENERAL_KEY. An empty mapping means every
        attempted delivery was accepted by the provider.
        """


class HTTPChannelAdapter(ChannelAdapter):
    """Channel adapter that talks to a JSON/HTTP provider through requests.

    Attributes:
        timeout: Request timeout in seconds
        user_agent: User-Agent header sent with every request
    """

    def __init__(
        self,
        timeout: int = 30,
        user_agent: str = "NotificationDispatch/1.0",
        session: Optional[requests.Session] = None,
        pool_maxsize: int = 10,
    ) -> None:
        """
        Args:
            timeout: Request timeout in seconds (5-300)
            user_agent: User-Agent header
            session: Pre-built session (tests inject a mock here)
            pool_maxsize: Connections kept per host when the session is
                built here; set to the number of threads sharing it

        Raises:
            ChannelConfigurationError: If timeout or user_agent is invalid
        """
        if not 5 <= timeout <= 300:
            raise ChannelConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise ChannelConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()

        if session is None:
            session = requests.Session()
            pool = HTTPAdapter(pool_maxsize=pool_maxsize)
            session.mount("https://", pool)
            session.mount("http://", pool)

        self._session = session
        self._session.headers.update({"User-Agent": self.user_agent})

    def _make_request(
        self,
        url: str,
        method: str = "POST",
        headers: Optional[Dict[str, str]] = None,
        json_data: Any = None,
        form_data: Optional[Dict[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
    ) -> Any:
        """Make one HTTP request to the provider. Never retries.

        Returns:
            Parsed JSON body, or an empty dict for an empty 2xx body

        Raises:
            ProviderHTTPError: On 4xx/5xx status or connection failure
            ProviderTimeoutError: On timeout
            ProviderResponseError: On a non-JSON 2xx body
        """
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={"event": "channel.request", "channel": self.channel, "url": url},
        )

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
                data=form_data,
                auth=auth,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "channel.request.timeout", "channel": self.channel, "url": url},
            )
            raise ProviderTimeoutError(
                f"request timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "channel.request.error",
                    "channel": self.channel,
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise ProviderHTTPError(f"request failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            log_level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                log_level,
                f"HTTP {response.status_code} error from {url}: {detail}",
                extra={
                    "event": "channel.request.error",
                    "channel": self.channel,
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise ProviderHTTPError(
                f"HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
                url=url,
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(f"invalid JSON response from {url}: {e}") from e


def _error_detail(response: requests.Response) -> str:
    """Best-effort human-readable reason from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or "unknown error"

    if isinstance(body, dict):
        # Twilio: {"code": ..., "message": ...}
        if isinstance(body.get("message"), str):
            return body["message"]
        # Expo: {"errors": [{"code": ..., "message": ...}]}
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return str(errors[0].get("message", errors[0]))

    return response.reason or "unknown error"
