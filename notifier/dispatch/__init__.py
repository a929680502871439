"""Notification dispatch core.

- Dispatcher: validates, persists, resolves recipients and fans out
- ErrorReport: per-channel, per-recipient failures of one dispatch
- DispatchOutcome: (notification id, report) returned to callers
- validate: structural check run before any side effect
"""

from .exceptions import DispatchError, MalformedNotificationError
from .models import DispatchOutcome
from .orchestrator import Dispatcher
from .report import ErrorReport
from .validator import validate

__all__ = [
    "Dispatcher",
    "DispatchOutcome",
    "ErrorReport",
    "validate",
    "DispatchError",
    "MalformedNotificationError",
]
