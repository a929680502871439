"""Result types returned by the dispatcher."""

from dataclasses import dataclass, field
from typing import Any, Dict

from .report import ErrorReport


@dataclass
class DispatchOutcome:
    """Result of a dispatch that passed validation and persistence.

    Attributes:
        notification_id: Id assigned by the store
        report: Delivery failures; empty when every attempt succeeded
    """

    notification_id: str
    report: ErrorReport = field(default_factory=ErrorReport)

    def is_full_success(self) -> bool:
        """True when no recipient or channel failed."""
        return not self.report.has_failures

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing shape: ``{"notificationId": ..., "errors": {...}}``."""
        return {
            "notificationId": self.notification_id,
            "errors": self.report.to_dict(),
        }
