"""Environment variable loading and validation."""

import os
import re
from typing import Optional

from .exceptions import ConfigurationError

_PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\-\s().]{5,}$")
_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        twilio_account_sid: Optional[str] = None,
        twilio_auth_token: Optional[str] = None,
        expo_access_token: Optional[str] = None,
        sms_from_number: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        self.twilio_account_sid = twilio_account_sid
        self.twilio_auth_token = twilio_auth_token
        self.expo_access_token = expo_access_token
        self.sms_from_number = sms_from_number
        self.log_level = log_level
        self.database_url = database_url or "sqlite:///./data/notifications.db"

    @property
    def sms_enabled(self) -> bool:
        """Whether Twilio credentials are available."""
        return bool(self.twilio_account_sid and self.twilio_auth_token)


def load_environment_config() -> EnvironmentConfig:
    """Load and validate environment variables.

    All variables are optional; without Twilio credentials the SMS adapter
    is not registered.

    - TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN: Twilio credentials (set both)
    - EXPO_ACCESS_TOKEN: Expo push security token
    - SMS_FROM_NUMBER: Sender phone number
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/notifications.db)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable is invalid
    """
    errors = []

    account_sid = os.getenv("TWILIO_ACCOUNT_SID")
    auth_token = os.getenv("TWILIO_AUTH_TOKEN")
    expo_access_token = os.getenv("EXPO_ACCESS_TOKEN")
    sms_from_number = os.getenv("SMS_FROM_NUMBER")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")

    if account_sid and not auth_token:
        errors.append(
            "TWILIO_ACCOUNT_SID is set but TWILIO_AUTH_TOKEN is not. Both must be set for SMS."
        )
    elif auth_token and not account_sid:
        errors.append(
            "TWILIO_AUTH_TOKEN is set but TWILIO_ACCOUNT_SID is not. Both must be set for SMS."
        )

    if sms_from_number and not _PHONE_PATTERN.match(sms_from_number.strip()):
        errors.append(f"Invalid SMS_FROM_NUMBER: '{sms_from_number}'")

    if log_level and log_level.upper() not in _VALID_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(_VALID_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN together or not at all",
            ],
        )

    return EnvironmentConfig(
        twilio_account_sid=account_sid,
        twilio_auth_token=auth_token,
        expo_access_token=expo_access_token,
        sms_from_number=sms_from_number.strip() if sms_from_number else None,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
    )
