"""Heads provider integration for HeadCatalog.

Fetches head lists from the primary API or the fallback archive and turns
them into immutable catalog entries.
"""

from headcatalog.integrations.heads.client import HeadsClient
from headcatalog.integrations.heads.errors import (
    CatalogError,
    CategoryRefreshFailure,
    MalformedDataError,
    NetworkError,
    RefreshFailure,
)
from headcatalog.integrations.heads.parser import HeadsParser, IdSequence
from headcatalog.integrations.heads.types import Category, Entry, UniqueIdOrigin

__all__ = [
    "HeadsClient",
    "HeadsParser",
    "IdSequence",
    "Category",
    "Entry",
    "UniqueIdOrigin",
    "CatalogError",
    "CategoryRefreshFailure",
    "MalformedDataError",
    "NetworkError",
    "RefreshFailure",
]
