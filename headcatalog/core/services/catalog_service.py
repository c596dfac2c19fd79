"""
Catalog Service - Orchestration Layer

SRP: Only refresh orchestration and lookup passthroughs.
Combines the coordinator (HTTP + parsing) and the store (in-memory snapshot).

Responsibilities:
- Single-flight refresh: concurrent callers join the in-flight cycle
- Atomic installation of usable snapshots, previous one kept otherwise
- Update subscriptions and per-call failure callbacks
- Deadline, cancellation and a periodic stale check
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, List, Optional, Tuple, Union

from headcatalog.core.config import settings
from headcatalog.core.services.catalog_status import CatalogStatus, catalog_status
from headcatalog.core.services.catalog_store import CatalogStore, CategoryRef, Snapshot
from headcatalog.core.services.refresh_coordinator import (
    FailureCallback,
    RefreshCoordinator,
    RefreshResult,
    notify,
)
from headcatalog.integrations.heads.client import HeadsClient
from headcatalog.integrations.heads.errors import RefreshFailure
from headcatalog.integrations.heads.parser import HeadsParser, IdSequence
from headcatalog.integrations.heads.types import Entry

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[Snapshot], None]


class CatalogService:
    """
    Keeps the head catalog fresh and answers lookups.

    Lookups are synchronous and only read the installed snapshot; they
    never start a fetch. ``refresh`` runs the cycle as an asyncio task so
    provider latency never blocks readers.
    """

    def __init__(
        self,
        *,
        store: Optional[CatalogStore] = None,
        coordinator: Optional[RefreshCoordinator] = None,
        client: Optional[HeadsClient] = None,
        status: Optional[CatalogStatus] = None,
        refresh_deadline_seconds: Optional[float] = None,
    ):
        self.store = store or CatalogStore(
            refresh_interval_seconds=settings.HEADS_REFRESH_INTERVAL,
            fetch_timeout_millis=settings.HEADS_FETCH_TIMEOUT_MS,
        )
        if coordinator is None:
            coordinator = RefreshCoordinator(client or HeadsClient(), HeadsParser(IdSequence()))
        self.coordinator = coordinator
        self.status = status or catalog_status
        self.refresh_deadline_seconds = (
            refresh_deadline_seconds if refresh_deadline_seconds is not None else settings.HEADS_REFRESH_DEADLINE
        )
        self._subscribers: List[UpdateCallback] = []
        self._inflight: Optional["asyncio.Task[RefreshResult]"] = None
        self._auto_task: Optional["asyncio.Task[None]"] = None

    # --- Subscriptions ---

    def subscribe(self, callback: UpdateCallback) -> Callable[[], None]:
        """Call *callback* with every newly installed snapshot. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # --- Refresh ---

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def refresh(
        self,
        *,
        on_update: Optional[UpdateCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> Optional[Snapshot]:
        """
        Run a refresh cycle, or join the one already in flight.

        Args:
            on_update: called with the installed snapshot on success
            on_failure: called once per CategoryRefreshFailure, then with
                a RefreshFailure if the cycle produced nothing usable

        Returns:
            The installed snapshot, or None when the cycle failed or was
            cancelled (the previous snapshot stays installed).
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._run_cycle())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("Refresh already in flight, joining it")

        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            logger.warning("Refresh cycle was cancelled, keeping previous catalog")
            notify(on_failure, RefreshFailure("Refresh cycle cancelled"))
            return None

        for failure in result.failures:
            notify(on_failure, failure)
        if result.snapshot is None:
            notify(on_failure, result.error)
            return None
        notify(on_update, result.snapshot)
        return result.snapshot

    async def refresh_if_stale(
        self,
        *,
        on_update: Optional[UpdateCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> Optional[Snapshot]:
        """Refresh only when the installed snapshot is older than the interval."""
        if not self.store.is_stale():
            return self.store.snapshot
        logger.info(
            "Catalog is stale (%.0fs since last update), refreshing",
            self.store.seconds_since_update(),
        )
        return await self.refresh(on_update=on_update, on_failure=on_failure)

    def cancel(self) -> bool:
        """Abandon the in-flight cycle, if any."""
        task = self._inflight
        if task is None or task.done():
            return False
        logger.info("Cancelling in-flight refresh")
        return task.cancel()

    def _clear_inflight(self, task: "asyncio.Task[RefreshResult]") -> None:
        if self._inflight is task:
            self._inflight = None

    async def _run_cycle(self) -> RefreshResult:
        logger.debug("Updating database...")
        result = RefreshResult(snapshot=None)
        cycle = self.coordinator.refresh_all(timeout_millis=self.store.fetch_timeout_millis, result=result)
        try:
            if self.refresh_deadline_seconds:
                await asyncio.wait_for(cycle, timeout=self.refresh_deadline_seconds)
            else:
                await cycle
        except asyncio.TimeoutError:
            result.snapshot = None
            result.error = RefreshFailure(
                f"Refresh cycle exceeded {self.refresh_deadline_seconds}s deadline",
                result.failures,
            )
            logger.error("Failed to update database! %s", result.error)

        failed = [failure.category for failure in result.failures]
        if result.snapshot is None:
            self.status.record_failure(
                str(result.error),
                source="stale" if self.store.count() else "none",
                failed_categories=failed,
            )
            return result

        snapshot = self.store.install(result.snapshot)
        result.snapshot = snapshot
        self.status.record_success(source=result.data_source, failed_categories=failed)
        for subscriber in list(self._subscribers):
            notify(subscriber, snapshot)
        return result

    # --- Background refresh ---

    def start_auto_refresh(self, check_interval: Optional[float] = None) -> "asyncio.Task[None]":
        """Start a loop that refreshes whenever the catalog goes stale."""
        if self._auto_task is not None and not self._auto_task.done():
            return self._auto_task
        interval = check_interval if check_interval is not None else settings.HEADS_AUTO_REFRESH_CHECK
        self._auto_task = asyncio.create_task(self._auto_refresh_loop(max(0.01, float(interval))))
        return self._auto_task

    async def _auto_refresh_loop(self, interval: float) -> None:
        while True:
            try:
                await self.refresh_if_stale()
            except Exception:
                logger.exception("Automatic catalog refresh failed")
            await asyncio.sleep(interval)

    async def aclose(self) -> None:
        """Stop the background loop and abandon any in-flight refresh."""
        tasks = [t for t in (self._auto_task, self._inflight) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._auto_task = None

    # --- Lookups ---

    def all(self, category: Optional[CategoryRef] = None) -> Tuple[Entry, ...]:
        return self.store.all(category)

    def by_id(self, head_id: int) -> Optional[Entry]:
        return self.store.by_id(head_id)

    def by_unique_id(self, unique_id: Union[uuid.UUID, str]) -> Optional[Entry]:
        return self.store.by_unique_id(unique_id)

    def by_value(self, value: str) -> Optional[Entry]:
        return self.store.by_value(value)

    def by_tag(self, tag: str) -> List[Entry]:
        return self.store.by_tag(tag)

    def by_name(self, name: str, category: Optional[CategoryRef] = None) -> List[Entry]:
        return self.store.by_name(name, category)

    def is_stale(self) -> bool:
        return self.store.is_stale()
