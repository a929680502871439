"""Root of the fatal dispatch error hierarchy.

Kept in its own module so the directory package can derive from it without
importing the dispatch package.
"""


class DispatchError(Exception):
    """Base exception for failures that abort a whole dispatch."""

    pass
