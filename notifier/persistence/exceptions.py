"""Persistence layer exceptions.

All inherit from PersistenceError. A PersistenceError raised while saving a
notification propagates out of Dispatcher.dispatch unchanged.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database connection or initialisation failed, or was never done."""

    pass


class RecordNotFoundError(PersistenceError):
    """A record that must exist was not found.

    Bulk lookups (contacts) return partial results instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """A database constraint was violated."""

    pass
