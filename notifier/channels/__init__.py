"""Channel adapters for delivering notifications.

- Push: push.PushAdapter (Expo push API, one batch per dispatch)
- SMS: sms.SMSAdapter (Twilio, one message per recipient)

Build the registry from configuration:
    from notifier.channels.factory import build_adapters
    adapters = build_adapters(app_config, env_config)

Exception handling (internal to adapters, never raised from send()):
    from notifier.channels.exceptions import ChannelError, ProviderHTTPError
"""

from .base import GENERAL_KEY, ChannelAdapter, HTTPChannelAdapter, PartialFailures
from .exceptions import (
    ChannelConfigurationError,
    ChannelError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from .factory import build_adapters
from .push import PushAdapter, is_valid_push_token
from .sms import SMSAdapter

__all__ = [
    # Base and factory
    "ChannelAdapter",
    "HTTPChannelAdapter",
    "PartialFailures",
    "GENERAL_KEY",
    "build_adapters",
    # Adapters
    "PushAdapter",
    "SMSAdapter",
    "is_valid_push_token",
    # Exceptions
    "ChannelError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "ProviderResponseError",
    "ChannelConfigurationError",
]
