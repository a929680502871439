"""Factory for building the channel adapter registry from configuration."""

import logging
from typing import Dict, Optional

import requests

from notifier.config.environment import EnvironmentConfig
from notifier.config.models import AppConfig

from .base import ChannelAdapter
from .exceptions import ChannelConfigurationError
from .push import PushAdapter
from .sms import SMSAdapter

logger = logging.getLogger(__name__)


def build_adapters(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    session: Optional[requests.Session] = None,
) -> Dict[str, ChannelAdapter]:
    """Instantiate every channel adapter the configuration allows.

    Push is always available. SMS needs Twilio credentials and a sender
    number; without them it is left out and dispatches requesting SMS get a
    "general" report entry instead.

    Args:
        app_config: Application configuration
        env_config: Environment configuration with provider credentials
        session: Optional shared requests session (mainly for tests)

    Returns:
        Mapping of channel name to adapter

    Raises:
        ChannelConfigurationError: If an adapter rejects its settings

    Example:
        >>> app_config, env_config = load_config()
        >>> adapters = build_adapters(app_config, env_config)
        >>> sorted(adapters)
        ['push', 'sms']
    """
    adapters: Dict[str, ChannelAdapter] = {}

    try:
        push = PushAdapter(
            api_url=app_config.push.api_url,
            access_token=env_config.expo_access_token,
            timeout=app_config.push.timeout,
            user_agent=app_config.push.user_agent,
            session=session,
        )
        adapters[push.channel] = push

        from_number = env_config.sms_from_number or app_config.sms.from_number
        if env_config.sms_enabled and from_number:
            sms = SMSAdapter(
                account_sid=env_config.twilio_account_sid,
                auth_token=env_config.twilio_auth_token,
                from_number=from_number,
                api_base_url=app_config.sms.api_base_url,
                status_callback_url=app_config.sms.status_callback_url,
                max_workers=app_config.sms.max_workers,
                timeout=app_config.sms.timeout,
                user_agent=app_config.push.user_agent,
                session=session,
            )
            adapters[sms.channel] = sms
        else:
            logger.warning(
                "SMS channel disabled: Twilio credentials or sender number missing",
                extra={"event": "channels.sms.disabled"},
            )
    except ChannelConfigurationError:
        raise
    except Exception as e:
        raise ChannelConfigurationError(f"Failed to create channel adapters: {e}") from e

    logger.debug(
        "Channel adapters created",
        extra={"event": "channels.created", "channels": sorted(adapters)},
    )
    return adapters
