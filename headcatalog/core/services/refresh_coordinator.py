"""Refresh coordinator: primary + fallback fetch per category."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from headcatalog.core.config import settings
from headcatalog.core.services.catalog_store import (
    DEFAULT_FETCH_TIMEOUT_MS,
    Snapshot,
    freeze_snapshot,
)
from headcatalog.integrations.heads.client import HeadsClient
from headcatalog.integrations.heads.errors import (
    CatalogError,
    CategoryRefreshFailure,
    MalformedDataError,
    NetworkError,
    RefreshFailure,
)
from headcatalog.integrations.heads.parser import HeadsParser
from headcatalog.integrations.heads.types import Category, Entry

logger = logging.getLogger(__name__)

FailureCallback = Callable[[CatalogError], None]

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"
SOURCE_NONE = "none"


@dataclass
class RefreshResult:
    snapshot: Optional[Snapshot]
    failures: List[CategoryRefreshFailure] = field(default_factory=list)
    sources: Dict[str, str] = field(default_factory=dict)  # category -> primary | fallback | none
    elapsed_ms: int = 0
    error: Optional[RefreshFailure] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    @property
    def data_source(self) -> str:
        """Summary for the status tracker: live | fallback | partial | none."""
        if self.snapshot is None:
            return "none"
        if self.failures:
            return "partial"
        if any(source == SOURCE_FALLBACK for source in self.sources.values()):
            return "fallback"
        return "live"


def notify(callback: Optional[Callable], *args: object) -> None:
    """Invoke a caller-supplied callback; its errors are logged, never raised."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("Refresh callback %r failed", callback)


class RefreshCoordinator:
    """
    Builds a candidate snapshot, one category at a time.

    For each category:
    1. primary provider ``<primary>?cat=<name>&tags=true``
    2. on any failure and when enabled, fallback ``<fallback>/<name>.json``
    3. both failed: the category maps to an empty tuple and a
       CategoryRefreshFailure is reported (not raised)

    The coordinator never installs the snapshot; that is the caller's call.
    """

    def __init__(
        self,
        client: HeadsClient,
        parser: HeadsParser,
        *,
        categories: Optional[Sequence[Category]] = None,
        primary_url: Optional[str] = None,
        fallback_url: Optional[str] = None,
        fallback_enabled: Optional[bool] = None,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.parser = parser
        self._categories = tuple(categories) if categories is not None else None
        self.primary_url = (primary_url or settings.HEADS_PRIMARY_URL).rstrip("/")
        self.fallback_url = (fallback_url or settings.HEADS_FALLBACK_URL).rstrip("/")
        self.fallback_enabled = settings.HEADS_FALLBACK_ENABLED if fallback_enabled is None else fallback_enabled
        self._time_fn = time_fn

    @property
    def categories(self) -> Sequence[Category]:
        return self._categories if self._categories is not None else Category.cache()

    def primary_url_for(self, category: Category) -> str:
        return f"{self.primary_url}?cat={category.name}&tags=true"

    def fallback_url_for(self, category: Category) -> str:
        return f"{self.fallback_url}/{category.name}.json"

    async def gather(self, url: str, category: Category, timeout_millis: int) -> List[Entry]:
        """Fetch and parse one provider response."""
        started = self._time_fn()
        entries = self.parser.parse(await self.client.fetch(url, timeout_millis), category)
        elapsed_ms = int((self._time_fn() - started) * 1000)
        logger.debug("%s -> Done! %d heads in %dms", category, len(entries), elapsed_ms)
        return entries

    async def refresh_category(
        self,
        category: Category,
        timeout_millis: int = DEFAULT_FETCH_TIMEOUT_MS,
    ) -> Tuple[List[Entry], str, Optional[CategoryRefreshFailure]]:
        """Return ``(entries, source, failure)`` for one category."""
        logger.debug("Caching heads from: %s", category)
        try:
            return await self.gather(self.primary_url_for(category), category, timeout_millis), SOURCE_PRIMARY, None
        except (NetworkError, MalformedDataError) as primary_error:
            logger.warning("Failed to fetch heads for %s: %s", category, primary_error)
            if not self.fallback_enabled:
                return [], SOURCE_NONE, CategoryRefreshFailure(category.name, primary_error)

            logger.info("Attempting fallback provider for: %s", category)
            try:
                entries = await self.gather(self.fallback_url_for(category), category, timeout_millis)
                return entries, SOURCE_FALLBACK, None
            except (NetworkError, MalformedDataError) as fallback_error:
                logger.error(
                    "Failed to fetch heads for %s from both providers: %s",
                    category,
                    fallback_error,
                )
                return [], SOURCE_NONE, CategoryRefreshFailure(category.name, primary_error, fallback_error)

    async def refresh_all(
        self,
        *,
        timeout_millis: int = DEFAULT_FETCH_TIMEOUT_MS,
        on_failure: Optional[FailureCallback] = None,
        result: Optional[RefreshResult] = None,
    ) -> RefreshResult:
        """
        Run one refresh cycle over every known category.

        Categories are processed sequentially, so ids are assigned in
        registry order. A failed category never aborts the others.

        Args:
            result: filled in place as categories complete, so a caller
                that abandons the cycle still sees the failures so far

        Returns:
            RefreshResult whose snapshot is None (with ``error`` set)
            only when every category failed.
        """
        started = self._time_fn()
        categories = list(self.categories)
        heads: Dict[Category, List[Entry]] = {}
        if result is None:
            result = RefreshResult(snapshot=None)

        for category in categories:
            entries, source, failure = await self.refresh_category(category, timeout_millis)
            heads[category] = entries
            result.sources[category.name] = source
            if failure is not None:
                result.failures.append(failure)
                notify(on_failure, failure)

        result.elapsed_ms = int((self._time_fn() - started) * 1000)

        if categories and len(result.failures) == len(categories):
            result.error = RefreshFailure(
                f"All {len(categories)} categories failed to refresh",
                result.failures,
            )
            logger.error("Failed to update database! %s", result.error)
            return result

        result.snapshot = freeze_snapshot(heads)
        logger.info(
            "Refresh cycle finished in %dms (%d/%d categories ok)",
            result.elapsed_ms,
            len(categories) - len(result.failures),
            len(categories),
        )
        return result
