"""Exception types raised by the store, the provider and the gateway."""

from typing import Optional


class TranscribeServerError(Exception):
    """Base class for errors surfaced at the request boundary."""


class InputError(TranscribeServerError):
    """The request carried no usable audio."""


class ProviderError(TranscribeServerError):
    """The speech provider call failed or returned an unexpected shape."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(TranscribeServerError):
    """The transcript store is unavailable or a query failed."""
