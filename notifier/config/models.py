"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class PushConfig(BaseModel):
    """Expo push provider settings."""

    api_url: str = Field(
        "https://exp.host/--/api/v2/push/send",
        description="Expo push send endpoint",
    )
    timeout: int = Field(30, ge=5, le=300, description="Request timeout (seconds)")
    user_agent: str = Field(
        "NotificationDispatch/1.0",
        min_length=1,
        description="User-Agent header for provider requests",
    )

    @field_validator("api_url")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        """Reject URLs without an http(s) scheme."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return v


class SMSConfig(BaseModel):
    """Twilio SMS provider settings (credentials come from the environment)."""

    api_base_url: str = Field(
        "https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL",
    )
    timeout: int = Field(30, ge=5, le=300, description="Request timeout (seconds)")
    from_number: Optional[str] = Field(
        None, description="Sender number; SMS_FROM_NUMBER overrides it"
    )
    status_callback_url: Optional[str] = Field(
        None, description="URL Twilio posts delivery status updates to"
    )
    max_workers: int = Field(
        4, ge=1, le=32, description="Concurrent per-recipient SMS sends"
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the base URL so paths can be appended safely."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v


class DispatchConfig(BaseModel):
    """Orchestrator settings."""

    max_channel_workers: int = Field(
        2, ge=1, le=8, description="Threads used to run channel adapters in parallel"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the notification dispatch service."""

    push: PushConfig = Field(default_factory=PushConfig)
    sms: SMSConfig = Field(default_factory=SMSConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def check_sms_callback(self):
        """Status callbacks must be absolute URLs."""
        callback = self.sms.status_callback_url
        if callback and not callback.startswith(("http://", "https://")):
            raise ValueError("sms.status_callback_url must be an absolute http(s) URL")
        return self
