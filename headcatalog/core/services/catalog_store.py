"""
Catalog Store - in-memory head snapshot with lookups.

SRP: Only holds the installed snapshot and answers queries against it.
No HTTP, no refresh logic.

The snapshot is an immutable mapping (category -> tuple of entries).
``install`` swaps the whole reference under a lock; every query reads the
reference once, so a reader sees either the old or the new snapshot in
full, never a mix of both.
"""
from __future__ import annotations

import logging
import math
import threading
import time
import uuid
from types import MappingProxyType
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from headcatalog.integrations.heads.formatting import normalize_for_search
from headcatalog.integrations.heads.types import Category, Entry

logger = logging.getLogger(__name__)

Snapshot = Mapping[Category, Tuple[Entry, ...]]
CategoryRef = Union[Category, str]

DEFAULT_REFRESH_INTERVAL = 3600
DEFAULT_FETCH_TIMEOUT_MS = 5000

_EMPTY: Snapshot = MappingProxyType({})


def freeze_snapshot(heads: Mapping[Category, Optional[Sequence[Entry]]]) -> Snapshot:
    """Build a read-only snapshot; a missing collection becomes an empty tuple."""
    return MappingProxyType({category: tuple(entries or ()) for category, entries in heads.items()})


def _as_category(category: CategoryRef) -> Category:
    if isinstance(category, Category):
        return category
    return Category.by_name(str(category)) or Category(name=str(category))


class CatalogStore:
    """Thread-safe holder of the current snapshot."""

    def __init__(
        self,
        *,
        refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL,
        fetch_timeout_millis: int = DEFAULT_FETCH_TIMEOUT_MS,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._snapshot: Snapshot = _EMPTY
        self._updated_at: Optional[float] = None
        self._time_fn = time_fn
        self.refresh_interval_seconds = refresh_interval_seconds
        self.fetch_timeout_millis = fetch_timeout_millis

    # --- Settings ---

    @property
    def refresh_interval_seconds(self) -> float:
        return self._refresh_interval

    @refresh_interval_seconds.setter
    def refresh_interval_seconds(self, value: float) -> None:
        self._refresh_interval = max(0.0, float(value))

    @property
    def fetch_timeout_millis(self) -> int:
        return self._fetch_timeout

    @fetch_timeout_millis.setter
    def fetch_timeout_millis(self, value: int) -> None:
        self._fetch_timeout = max(1, int(value))

    # --- Installation ---

    def install(self, heads: Mapping[Category, Optional[Sequence[Entry]]]) -> Snapshot:
        """Replace the current snapshot wholesale and reset the staleness clock."""
        snapshot = freeze_snapshot(heads)
        with self._lock:
            self._snapshot = snapshot
            self._updated_at = self._time_fn()
        logger.info(
            "Catalog installed: %d heads in %d categories",
            sum(len(entries) for entries in snapshot.values()),
            len(snapshot),
        )
        return snapshot

    @property
    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    # --- Staleness ---

    def seconds_since_update(self) -> float:
        """Seconds since the last install, ``inf`` if nothing was installed yet."""
        with self._lock:
            updated_at = self._updated_at
        if updated_at is None:
            return math.inf
        return max(0.0, self._time_fn() - updated_at)

    def is_stale(self) -> bool:
        return self.seconds_since_update() >= self.refresh_interval_seconds

    # --- Queries ---

    @staticmethod
    def _iter(snapshot: Snapshot) -> Iterator[Entry]:
        for entries in snapshot.values():
            yield from entries

    def all(self, category: Optional[CategoryRef] = None) -> Tuple[Entry, ...]:
        """Every entry, or one category's entries (unknown category -> empty)."""
        snapshot = self.snapshot
        if category is not None:
            return snapshot.get(_as_category(category), ())
        return tuple(self._iter(snapshot))

    def categories(self) -> List[Category]:
        return list(self.snapshot.keys())

    def count(self) -> int:
        return sum(len(entries) for entries in self.snapshot.values())

    def by_id(self, head_id: int) -> Optional[Entry]:
        for head in self._iter(self.snapshot):
            if head.id == head_id:
                return head
        return None

    def by_unique_id(self, unique_id: Union[uuid.UUID, str]) -> Optional[Entry]:
        if not isinstance(unique_id, uuid.UUID):
            try:
                unique_id = uuid.UUID(str(unique_id))
            except ValueError:
                return None
        for head in self._iter(self.snapshot):
            if head.unique_id == unique_id:
                return head
        return None

    def by_value(self, value: str) -> Optional[Entry]:
        for head in self._iter(self.snapshot):
            if head.value == value:
                return head
        return None

    def by_tag(self, tag: str) -> List[Entry]:
        """Case-insensitive tag substring match, category order then entry order."""
        return [head for head in self._iter(self.snapshot) if head.has_tag(tag)]

    def by_name(self, name: str, category: Optional[CategoryRef] = None) -> List[Entry]:
        """Case-insensitive name substring match, formatting codes ignored."""
        needle = normalize_for_search(name)
        return [head for head in self.all(category) if needle in normalize_for_search(head.name)]
