from typing import Optional


class TokenProviderError(Exception):
    """Base class for all token provider errors"""


class UpstreamError(TokenProviderError):
    """
    An upstream call failed: non-2xx status or transport failure.
    Retried by the fetcher; the last one is raised once attempts run out.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class DataShapeError(TokenProviderError):
    """An upstream answered but the payload is missing expected fields. Never retried."""


class CacheIOError(TokenProviderError):
    """Reading or writing the persistent cache failed"""


class AggregationError(TokenProviderError):
    """Holder pagination failed part-way; accumulated pages are discarded"""
