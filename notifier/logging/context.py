"""Context propagation for structured logging.

Fields pushed here are stamped onto every log record emitted inside the
scope. Storage is a ContextVar, so worker threads only see the context when
they are started through ``run_with_context``.
"""

from contextvars import ContextVar, Token, copy_context
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Args:
        **kwargs: Fields to add

    Returns:
        Token for pop_log_context()

    Example:
        >>> token = push_log_context(notification_id="abc123")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context captured by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all context fields. Mostly useful in tests."""
    LogContextVar.set({})


def run_with_context(fn: Callable[..., T]) -> Callable[..., T]:
    """Bind fn to a snapshot of the caller's context.

    Executor threads start with an empty context; wrapping the submitted
    callable keeps notification_id and friends on worker log records.

    Example:
        >>> executor.submit(run_with_context(adapter.send), contacts, notification)
    """
    ctx = copy_context()

    def _runner(*args, **kwargs):
        return ctx.run(fn, *args, **kwargs)

    return _runner


class log_context:
    """Context manager for scoped logging fields.

    Example:
        >>> with log_context(notification_id="abc123", channel="push"):
        ...     logger.info("Sending batch")
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
