"""
Rate Source Exceptions.

Raised by a source, caught by RateProvider: none of these reach a caller
of resolve_rate(). The subclass decides what happens next:

    FetchError            transport failure, go to the next source
    NormalizationError    reply arrived but carried no usable rate
    NoAvailableSourceError  every live source failed, use the static table
"""

from typing import Optional


class RateSourceError(Exception):
    """A rate source could not produce a rate."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error


class FetchError(RateSourceError):
    """Connection error, timeout or HTTP error status."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        timeout: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.status_code = status_code
        self.timeout = timeout


class NormalizationError(RateSourceError):
    """Malformed reply: not JSON, failure flag set, or a missing/invalid rate."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.field_name = field_name


class NoAvailableSourceError(RateSourceError):
    """No live source produced a rate; `attempted_sources` lists who was asked."""

    def __init__(
        self,
        message: str,
        attempted_sources: list[str],
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, None, original_error)
        self.attempted_sources = attempted_sources
