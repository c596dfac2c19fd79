"""
Catalog Provider Status: in-memory singleton.

Tracks how the last refresh cycle went so that endpoints can report
whether the catalog is live, served from the fallback archive, partial,
or empty.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence


class CatalogStatus:
    """Mutable, in-memory state of the head providers."""

    def __init__(self) -> None:
        self.online: bool = True
        self.last_success_at: Optional[str] = None
        self.last_error: Optional[str] = None
        self.data_source: str = "none"  # "live" | "fallback" | "partial" | "none"
        self.failed_categories: List[str] = []

    def record_success(
        self,
        *,
        source: str = "live",
        failed_categories: Sequence[str] = (),
    ) -> None:
        self.online = True
        self.last_success_at = dt.datetime.now(dt.timezone.utc).isoformat()
        self.last_error = None
        self.data_source = source
        self.failed_categories = list(failed_categories)

    def record_failure(
        self,
        error: str,
        *,
        source: str = "none",
        failed_categories: Sequence[str] = (),
    ) -> None:
        self.online = False
        self.last_error = error
        self.data_source = source
        self.failed_categories = list(failed_categories)

    def reset(self) -> None:
        self.online = True
        self.last_success_at = None
        self.last_error = None
        self.data_source = "none"
        self.failed_categories = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "online": self.online,
            "last_success_at": self.last_success_at,
            "last_error": self.last_error,
            "data_source": self.data_source,
            "failed_categories": list(self.failed_categories),
        }


# Module-level singleton, imported by catalog_service and router.
catalog_status = CatalogStatus()
