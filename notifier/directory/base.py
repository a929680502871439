"""Recipient directory boundary."""

from abc import ABC, abstractmethod
from typing import Dict, Sequence

from notifier.domain.models import RecipientContact


class RecipientDirectory(ABC):
    """Resolves recipient ids to contact records."""

    @abstractmethod
    def resolve(self, recipient_ids: Sequence[str]) -> Dict[str, RecipientContact]:
        """Bulk lookup of contacts.

        Args:
            recipient_ids: Ids to resolve (callers pass them de-duplicated)

        Returns:
            Mapping of id to contact; unknown ids are absent

        Raises:
            DirectoryUnavailableError: If the directory cannot be reached
        """
