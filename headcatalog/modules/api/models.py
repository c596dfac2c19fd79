from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from headcatalog.integrations.heads.types import Entry


class HeadOut(BaseModel):
    id: int
    uuid: str
    uuidOrigin: str
    name: str
    value: str
    tags: List[str] = Field(default_factory=list)
    category: str

    @classmethod
    def from_entry(cls, entry: Entry) -> "HeadOut":
        return cls(
            id=entry.id,
            uuid=str(entry.unique_id),
            uuidOrigin=entry.unique_id_origin.value,
            name=entry.name,
            value=entry.value,
            tags=sorted(entry.tags),
            category=entry.category.name,
        )


class RefreshOut(BaseModel):
    ok: bool
    heads: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    failures: List[str] = Field(default_factory=list)
    error: Optional[str] = None
