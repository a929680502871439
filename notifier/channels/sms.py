"""Twilio SMS adapter."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

import requests

from notifier.domain.models import Channel, Notification, RecipientContact
from notifier.logging import get_logger
from notifier.logging.context import run_with_context

from .base import HTTPChannelAdapter, PartialFailures
from .exceptions import ChannelConfigurationError

logger = get_logger(__name__, component="channel")


class SMSAdapter(HTTPChannelAdapter):
    """Sends one Twilio message per recipient phone number.

    Only applies when the notification carries an SMS message. Contacts
    without a phone number are skipped silently. Each send is independent:
    a failure is recorded under that recipient and the others still go out.

    Sends run on up to ``max_workers`` threads sharing one session, which
    is not mutated after construction. A session built here keeps
    ``max_workers`` pooled connections per host.

    API Details:
        Endpoint: {api_base_url}/Accounts/{account_sid}/Messages.json
        Method: POST (form encoded To/From/Body[/StatusCallback])
        Authentication: HTTP basic (account SID, auth token)
    """

    channel = Channel.SMS.value

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base_url: str = "https://api.twilio.com/2010-04-01",
        status_callback_url: Optional[str] = None,
        max_workers: int = 4,
        timeout: int = 30,
        user_agent: str = "NotificationDispatch/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            timeout=timeout, user_agent=user_agent, session=session, pool_maxsize=max(max_workers, 1)
        )

        if not account_sid or not auth_token:
            raise ChannelConfigurationError("Twilio account SID and auth token are required")
        if not from_number:
            raise ChannelConfigurationError("SMS sender number is required")
        if max_workers < 1:
            raise ChannelConfigurationError(f"max_workers must be at least 1, got: {max_workers}")

        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.status_callback_url = status_callback_url
        self.max_workers = max_workers
        self.messages_url = f"{api_base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"

    def applies_to(self, notification: Notification) -> bool:
        return bool(notification.sms_message)

    def send(
        self, contacts: Sequence[RecipientContact], notification: Notification
    ) -> PartialFailures:
        failures: PartialFailures = {}
        targets = [contact for contact in contacts if contact.phone_number]

        skipped = len(contacts) - len(targets)
        if skipped:
            logger.debug(
                f"Skipping {skipped} recipients without a phone number",
                extra={"event": "sms.send.skipped", "skipped": skipped},
            )

        if not targets:
            return failures

        workers = min(self.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sms") as executor:
            futures = {
                executor.submit(
                    run_with_context(self.send_message),
                    notification.sms_message,
                    contact.phone_number,
                ): contact
                for contact in targets
            }

            for future in as_completed(futures):
                contact = futures[future]
                try:
                    future.result()
                except Exception as e:
                    failures[contact.recipient_id] = f"failed to send SMS: {e}"
                    logger.warning(
                        f"SMS to recipient {contact.recipient_id} failed: {e}",
                        extra={
                            "event": "sms.send.failure",
                            "recipient_id": contact.recipient_id,
                            "error_type": type(e).__name__,
                        },
                    )

        logger.info(
            f"SMS sent to {len(targets) - len(failures)} of {len(targets)} recipients",
            extra={
                "event": "sms.send.completed",
                "attempted": len(targets),
                "failed": len(failures),
            },
        )
        return failures

    def send_message(self, message: str, phone_number: str) -> str:
        """Send one SMS.

        Returns:
            The Twilio message SID (empty string if absent from the response)

        Raises:
            ChannelError: If the provider call fails
        """
        form = {"To": phone_number, "From": self.from_number, "Body": message}
        if self.status_callback_url:
            form["StatusCallback"] = self.status_callback_url

        response = self._make_request(
            self.messages_url,
            method="POST",
            headers={"Accept": "application/json"},
            form_data=form,
            auth=(self.account_sid, self.auth_token),
        )
        sid = response.get("sid", "") if isinstance(response, dict) else ""
        logger.debug(
            "SMS accepted by provider",
            extra={"event": "sms.send.accepted", "message_sid": sid},
        )
        return sid
