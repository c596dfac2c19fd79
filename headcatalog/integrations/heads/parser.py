"""
Heads Integration - Response parser

SRP: Only turns provider JSON into Entry objects.

Expected payload (one object per head)::

    [{"uuid": "...", "name": "Steve", "value": "eyJ0...", "tags": "human,player"}]

``name`` and ``value`` are required; ``uuid`` and ``tags`` are optional.
"""
from __future__ import annotations

import itertools
import json
import re
import threading
import uuid
from typing import Any, FrozenSet, List, Tuple

from .errors import MalformedDataError
from .types import NO_TAGS, Category, Entry, UniqueIdOrigin

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class IdSequence:
    """Thread-safe, monotonically increasing entry id counter."""

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


def resolve_unique_id(raw: Any) -> Tuple[uuid.UUID, UniqueIdOrigin]:
    """Use the upstream id when well formed, otherwise generate one."""
    if isinstance(raw, str) and _UUID_RE.match(raw.strip()):
        return uuid.UUID(raw.strip()), UniqueIdOrigin.UPSTREAM
    return uuid.uuid4(), UniqueIdOrigin.GENERATED


def parse_tags(raw: Any) -> FrozenSet[str]:
    if raw is None:
        return frozenset({NO_TAGS})
    if isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw if item is not None]
    else:
        items = str(raw).split(",")
    tags = frozenset(item.strip() for item in items if item.strip())
    return tags or frozenset({NO_TAGS})


def _required(obj: dict, key: str, index: int) -> str:
    value = obj.get(key)
    if value is None or isinstance(value, (dict, list)):
        raise MalformedDataError(f"Head at index {index} has no usable '{key}'")
    return str(value)


class HeadsParser:
    """Builds entries from provider text, drawing ids from a shared sequence."""

    def __init__(self, ids: IdSequence):
        self.ids = ids

    def parse(self, text: str, category: Category) -> List[Entry]:
        """
        Parse a JSON array of head objects for *category*.

        Raises:
            MalformedDataError: not valid JSON, not an array, an element
                is not an object, or an element lacks name/value.
        """
        try:
            data = json.loads(text)
        except (ValueError, RecursionError, TypeError) as e:
            raise MalformedDataError(f"Invalid JSON for {category}: {e}") from e
        if not isinstance(data, list):
            raise MalformedDataError(
                f"Expected a JSON array for {category}, got {type(data).__name__}"
            )

        # Every element is validated before any id is drawn.
        for index, obj in enumerate(data):
            if not isinstance(obj, dict):
                raise MalformedDataError(f"Head at index {index} is not an object")
            _required(obj, "name", index)
            _required(obj, "value", index)

        entries: List[Entry] = []
        for index, obj in enumerate(data):
            unique_id, origin = resolve_unique_id(obj.get("uuid"))
            entries.append(
                Entry(
                    id=self.ids.next(),
                    unique_id=unique_id,
                    unique_id_origin=origin,
                    name=_required(obj, "name", index),
                    value=_required(obj, "value", index),
                    tags=parse_tags(obj.get("tags")),
                    category=category,
                )
            )
        return entries
