"""Recipient directory: resolves recipient ids to delivery addresses."""

from .base import RecipientDirectory
from .exceptions import DirectoryError, DirectoryUnavailableError
from .sql import SQLRecipientDirectory

__all__ = [
    "RecipientDirectory",
    "SQLRecipientDirectory",
    "DirectoryError",
    "DirectoryUnavailableError",
]
