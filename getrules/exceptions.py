"""Exceptions raised by getrules."""

from typing import Optional


class GetRulesError(Exception):
    """Base exception for all getrules errors."""


class ConfigError(GetRulesError):
    """Configuration is missing or unusable."""


class TransportError(GetRulesError):
    """A request to the contents API failed.

    Raised for non-2xx responses and network failures. Requests are never
    retried.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class PayloadShapeError(TransportError):
    """A listing response did not have the expected shape."""


class FilesystemError(GetRulesError):
    """A local filesystem operation failed."""
