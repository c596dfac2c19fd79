"""
API Router - read endpoints over the in-memory head catalog.

Lookups never hit the providers; only POST /refresh starts (or joins)
a refresh cycle.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from headcatalog.core.services.catalog_service import CatalogService
from headcatalog.core.services.catalog_status import catalog_status
from headcatalog.integrations.heads import CatalogError, Category, CategoryRefreshFailure, Entry
from headcatalog.modules.api.models import HeadOut, RefreshOut

_logger = logging.getLogger(__name__)

router = APIRouter()

# Service instance
catalog = CatalogService()


def _out(entries) -> List[HeadOut]:
    return [HeadOut.from_entry(entry) for entry in entries]


def _category(name: Optional[str]) -> Optional[Category]:
    """Resolve a category name case-insensitively; unknown names match nothing."""
    if not name:
        return None
    return Category.by_name(name) or Category(name=name)


def _one(entry: Optional[Entry], detail: str) -> HeadOut:
    if entry is None:
        raise HTTPException(status_code=404, detail=detail)
    return HeadOut.from_entry(entry)


@router.get("/categories")
def list_categories() -> List[str]:
    """Known categories, in refresh order."""
    return [category.name for category in Category.cache()]


@router.get("/heads", response_model=List[HeadOut])
def list_heads(category: Optional[str] = None):
    """All heads, or one category (unknown category -> empty list)."""
    return _out(catalog.all(_category(category)))


# Static paths are declared before /heads/{head_id} so they are not
# captured by the id route.
@router.get("/heads/search", response_model=List[HeadOut])
def search_heads(name: str = Query(..., min_length=1), category: Optional[str] = None):
    """Case-insensitive name search, colour codes ignored."""
    return _out(catalog.by_name(name, _category(category)))


@router.get("/heads/value", response_model=HeadOut)
def head_by_value(value: str = Query(..., min_length=1)):
    return _one(catalog.by_value(value), "No head with that value")


@router.get("/heads/tags/{tag}", response_model=List[HeadOut])
def heads_by_tag(tag: str):
    return _out(catalog.by_tag(tag))


@router.get("/heads/uuid/{unique_id}", response_model=HeadOut)
def head_by_unique_id(unique_id: str):
    return _one(catalog.by_unique_id(unique_id), f"Head {unique_id} not found")


@router.get("/heads/{head_id}", response_model=HeadOut)
def head_by_id(head_id: int):
    return _one(catalog.by_id(head_id), f"Head {head_id} not found")


@router.get("/status")
def catalog_upstream_status() -> Dict[str, Any]:
    """Provider state plus staleness of the installed catalog."""
    since = catalog.store.seconds_since_update()
    return {
        **catalog_status.to_dict(),
        "heads": catalog.store.count(),
        "stale": catalog.is_stale(),
        "seconds_since_update": None if since == float("inf") else round(since, 3),
        "refresh_interval": catalog.store.refresh_interval_seconds,
        "refreshing": catalog.is_refreshing,
    }


@router.post("/refresh", response_model=RefreshOut)
async def refresh_catalog():
    """Start a refresh cycle (or join the running one) and wait for it."""
    failures: List[str] = []
    errors: List[str] = []

    def _on_failure(error: CatalogError) -> None:
        if isinstance(error, CategoryRefreshFailure):
            failures.append(error.category)
        else:
            errors.append(str(error))

    snapshot = await catalog.refresh(on_failure=_on_failure)
    if snapshot is None:
        detail = errors[-1] if errors else "Refresh failed"
        _logger.error("Manual refresh failed: %s", detail)
        raise HTTPException(status_code=503, detail=detail)

    return RefreshOut(
        ok=True,
        heads=sum(len(entries) for entries in snapshot.values()),
        categories={category.name: len(entries) for category, entries in snapshot.items()},
        failures=failures,
    )
