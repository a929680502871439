"""Test helper utilities for notification dispatch tests."""

from .fakes import (
    FakeDirectory,
    InMemoryStore,
    RecordingAdapter,
    mock_response,
    mock_session,
    persistence_failure,
)

__all__ = [
    "FakeDirectory",
    "InMemoryStore",
    "RecordingAdapter",
    "mock_response",
    "mock_session",
    "persistence_failure",
]
