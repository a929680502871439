"""Exceptions raised inside channel adapters.

Adapters catch these themselves and turn them into report entries; they are
never raised out of ChannelAdapter.send.
"""


class ChannelError(Exception):
    """Base exception for all channel adapter errors."""

    pass


class ProviderHTTPError(ChannelError):
    """The provider answered with an HTTP error, or the request never got an answer.

    status_code is 0 for connection-level failures.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ProviderTimeoutError(ChannelError):
    """The provider did not answer within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ProviderResponseError(ChannelError):
    """The provider answered 2xx but the body was unusable or reported errors."""

    pass


class ChannelConfigurationError(ChannelError):
    """An adapter was constructed with invalid settings or credentials."""

    pass
