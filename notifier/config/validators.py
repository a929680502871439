"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Inspect a raw configuration dict for settings that work but look wrong.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    messages = []

    push = config_dict.get("push") or {}
    if isinstance(push, dict):
        api_url = push.get("api_url")
        if isinstance(api_url, str) and api_url.startswith("http://"):
            messages.append(f"push.api_url uses plain HTTP ({api_url}); tokens will be sent unencrypted")

    sms = config_dict.get("sms") or {}
    if isinstance(sms, dict):
        callback = sms.get("status_callback_url")
        if isinstance(callback, str) and callback.startswith("http://"):
            messages.append("sms.status_callback_url uses plain HTTP; Twilio recommends HTTPS callbacks")

        max_workers = sms.get("max_workers")
        if isinstance(max_workers, int) and max_workers > 16:
            messages.append(
                f"Large sms.max_workers ({max_workers}) may trip Twilio rate limits"
            )

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
