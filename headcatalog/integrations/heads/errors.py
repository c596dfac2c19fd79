"""
Heads Integration - Custom Exceptions

SRP: Only error definitions, no logic.
Raised by client.py and parser.py, collected by the refresh coordinator
and reported (never thrown) to the catalog service callers.
"""
from __future__ import annotations

from typing import List, Optional, Sequence


class CatalogError(Exception):
    """Base error for the heads catalog."""
    pass


class NetworkError(CatalogError):
    """Provider could not be reached, timed out, or returned an unusable response."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class MalformedDataError(CatalogError):
    """Response body is not a JSON array of head objects."""
    pass


class CategoryRefreshFailure(CatalogError):
    """Both the primary and the fallback provider failed for one category."""

    def __init__(
        self,
        category: str,
        primary_error: Exception,
        fallback_error: Optional[Exception] = None,
    ) -> None:
        if fallback_error is None:
            message = f"Failed to fetch heads for {category}: {primary_error}"
        else:
            message = (
                f"Failed to fetch heads for {category}: "
                f"primary: {primary_error}; fallback: {fallback_error}"
            )
        super().__init__(message)
        self.category = category
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class RefreshFailure(CatalogError):
    """A refresh cycle produced no usable snapshot."""

    def __init__(
        self,
        reason: str,
        failures: Sequence[CategoryRefreshFailure] = (),
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.failures: List[CategoryRefreshFailure] = list(failures)
