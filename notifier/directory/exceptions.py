"""Recipient directory exceptions."""

from notifier.exceptions import DispatchError


class DirectoryError(DispatchError):
    """Base exception for recipient directory errors."""

    pass


class DirectoryUnavailableError(DirectoryError):
    """The directory could not be queried at all.

    Distinct from individual unknown recipients, which are simply missing
    from a successful lookup. Raising this aborts the dispatch before any
    channel is attempted.
    """

    pass
