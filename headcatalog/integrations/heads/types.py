"""
Heads Integration - Data model

Pydantic models for catalog entries plus the category registry.
Entries are frozen once built: a snapshot is replaced wholesale, never
edited in place.
"""
from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from headcatalog.core.config import settings

DEFAULT_CATEGORY_NAMES: Tuple[str, ...] = (
    "alphabet",
    "animals",
    "blocks",
    "decoration",
    "food-drinks",
    "humans",
    "humanoid",
    "miscellaneous",
    "monsters",
    "plants",
)

NO_TAGS = "None"

_registry: Optional[Tuple["Category", ...]] = None


class Category(BaseModel):
    """A named partition of heads. The name is used verbatim in provider URLs."""

    model_config = ConfigDict(frozen=True)

    name: str

    def __str__(self) -> str:
        return self.name

    @classmethod
    def cache(cls) -> Tuple["Category", ...]:
        """Return every known category, in refresh order."""
        global _registry
        if _registry is None:
            names = settings.HEADS_CATEGORIES or DEFAULT_CATEGORY_NAMES
            _registry = tuple(cls(name=name) for name in names)
        return _registry

    @classmethod
    def by_name(cls, name: str) -> Optional["Category"]:
        """Case-insensitive registry lookup."""
        wanted = (name or "").strip().lower()
        for category in cls.cache():
            if category.name.lower() == wanted:
                return category
        return None


class UniqueIdOrigin(str, Enum):
    UPSTREAM = "upstream"  # well-formed id supplied by the provider
    GENERATED = "generated"  # missing or invalid upstream, random id


class Entry(BaseModel):
    """One head in the catalog."""

    model_config = ConfigDict(frozen=True)

    id: int
    unique_id: UUID
    unique_id_origin: UniqueIdOrigin
    name: str
    value: str
    tags: FrozenSet[str]
    category: Category

    def has_tag(self, tag: str) -> bool:
        """Case-insensitive substring match against any tag."""
        needle = (tag or "").lower()
        return any(needle in t.lower() for t in self.tags)
