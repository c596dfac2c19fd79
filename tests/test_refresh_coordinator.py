"""Unit tests for primary/fallback behavior in the refresh coordinator."""

from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Tuple, Union

from headcatalog.core.services.refresh_coordinator import RefreshCoordinator
from headcatalog.integrations.heads.errors import (
    CategoryRefreshFailure,
    MalformedDataError,
    NetworkError,
    RefreshFailure,
)
from headcatalog.integrations.heads.parser import HeadsParser, IdSequence
from headcatalog.integrations.heads.types import Category

PRIMARY = "https://primary.test/scripts/api.php"
FALLBACK = "https://fallback.test/archive"
ALPHABET = Category(name="alphabet")
ANIMALS = Category(name="animals")
STEVE_UUID = "4b1c6a0e-7c4a-4d7b-9f0e-2a6c3e1d5b7f"
PIG_UUID = "8f14e45f-ceea-467f-a0e6-4a0e6b3f2d11"

ALPHABET_BODY = json.dumps([{"name": "Letter A", "value": "va", "uuid": STEVE_UUID, "tags": "letter"}])
ANIMALS_BODY = json.dumps([{"name": "Pig", "value": "vp", "uuid": PIG_UUID, "tags": "animal,farm"}])


def primary(category: Category) -> str:
    return f"{PRIMARY}?cat={category.name}&tags=true"


def fallback(category: Category) -> str:
    return f"{FALLBACK}/{category.name}.json"


class _StubClient:
    def __init__(self, responses: Dict[str, Union[str, Exception]]) -> None:
        self.responses = responses
        self.calls: List[Tuple[str, int]] = []

    async def fetch(self, url: str, timeout_millis: int) -> str:
        self.calls.append((url, timeout_millis))
        outcome = self.responses.get(url, NetworkError("no route", url=url))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]


def _build(responses: Dict[str, Union[str, Exception]], *, fallback_enabled: bool = True):
    client = _StubClient(responses)
    coordinator = RefreshCoordinator(
        client,  # type: ignore[arg-type]
        HeadsParser(IdSequence()),
        categories=[ALPHABET, ANIMALS],
        primary_url=PRIMARY,
        fallback_url=FALLBACK,
        fallback_enabled=fallback_enabled,
    )
    return coordinator, client


def _expected(text: str, category: Category) -> list:
    return [h.model_dump(exclude={"id"}) for h in HeadsParser(IdSequence()).parse(text, category)]


def _dump(entries) -> list:
    return [h.model_dump(exclude={"id"}) for h in entries]


def test_primary_success_for_every_category() -> None:
    coordinator, client = _build({primary(ALPHABET): ALPHABET_BODY, primary(ANIMALS): ANIMALS_BODY})

    result = asyncio.run(coordinator.refresh_all(timeout_millis=1234))

    assert result.ok is True
    assert _dump(result.snapshot[ALPHABET]) == _expected(ALPHABET_BODY, ALPHABET)
    assert _dump(result.snapshot[ANIMALS]) == _expected(ANIMALS_BODY, ANIMALS)
    assert result.failures == []
    assert result.sources == {"alphabet": "primary", "animals": "primary"}
    assert result.data_source == "live"
    assert client.calls == [(primary(ALPHABET), 1234), (primary(ANIMALS), 1234)]


def test_ids_follow_category_order() -> None:
    coordinator, _ = _build({primary(ALPHABET): ALPHABET_BODY, primary(ANIMALS): ANIMALS_BODY})

    result = asyncio.run(coordinator.refresh_all())

    assert [h.id for h in result.snapshot[ALPHABET]] == [0]
    assert [h.id for h in result.snapshot[ANIMALS]] == [1]


def test_fallback_used_when_primary_fails() -> None:
    coordinator, client = _build(
        {
            primary(ALPHABET): NetworkError("refused"),
            fallback(ALPHABET): ALPHABET_BODY,
            primary(ANIMALS): ANIMALS_BODY,
        }
    )

    result = asyncio.run(coordinator.refresh_all())

    assert _dump(result.snapshot[ALPHABET]) == _expected(ALPHABET_BODY, ALPHABET)
    assert result.sources["alphabet"] == "fallback"
    assert result.data_source == "fallback"
    assert client.urls() == [primary(ALPHABET), fallback(ALPHABET), primary(ANIMALS)]


def test_malformed_primary_triggers_fallback() -> None:
    coordinator, _ = _build(
        {
            primary(ALPHABET): "<html>oops</html>",
            fallback(ALPHABET): ALPHABET_BODY,
            primary(ANIMALS): ANIMALS_BODY,
        }
    )

    result = asyncio.run(coordinator.refresh_all())

    assert len(result.snapshot[ALPHABET]) == 1
    assert result.failures == []


def test_both_providers_fail_degrades_to_empty_category() -> None:
    reported = []
    coordinator, _ = _build(
        {
            primary(ALPHABET): NetworkError("refused"),
            fallback(ALPHABET): "not json",
            primary(ANIMALS): ANIMALS_BODY,
        }
    )

    result = asyncio.run(coordinator.refresh_all(on_failure=reported.append))

    assert result.snapshot[ALPHABET] == ()
    assert len(result.snapshot[ANIMALS]) == 1
    assert result.data_source == "partial"
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert isinstance(failure, CategoryRefreshFailure)
    assert failure.category == "alphabet"
    assert isinstance(failure.primary_error, NetworkError)
    assert isinstance(failure.fallback_error, MalformedDataError)
    assert reported == [failure]


def test_fallback_disabled_reports_without_second_attempt() -> None:
    reported = []
    coordinator, client = _build(
        {
            primary(ALPHABET): NetworkError("timeout"),
            fallback(ALPHABET): ALPHABET_BODY,
            primary(ANIMALS): ANIMALS_BODY,
        },
        fallback_enabled=False,
    )

    result = asyncio.run(coordinator.refresh_all(on_failure=reported.append))

    assert result.snapshot[ALPHABET] == ()
    assert _dump(result.snapshot[ANIMALS]) == _expected(ANIMALS_BODY, ANIMALS)
    assert len(reported) == 1
    assert reported[0].category == "alphabet"
    assert reported[0].fallback_error is None
    assert fallback(ALPHABET) not in client.urls()


def test_all_categories_failing_yields_no_snapshot() -> None:
    coordinator, _ = _build({})

    result = asyncio.run(coordinator.refresh_all())

    assert result.ok is False
    assert result.snapshot is None
    assert result.data_source == "none"
    assert isinstance(result.error, RefreshFailure)
    assert [f.category for f in result.error.failures] == ["alphabet", "animals"]


def test_failing_callback_does_not_abort_cycle() -> None:
    def explode(_error) -> None:
        raise RuntimeError("listener bug")

    coordinator, _ = _build({primary(ANIMALS): ANIMALS_BODY})

    result = asyncio.run(coordinator.refresh_all(on_failure=explode))

    assert result.ok is True
    assert len(result.snapshot[ANIMALS]) == 1


def test_urls_are_built_verbatim() -> None:
    coordinator = RefreshCoordinator(
        _StubClient({}),  # type: ignore[arg-type]
        HeadsParser(IdSequence()),
        primary_url="https://p.test/api.php",
        fallback_url="https://f.test/archive/",
    )
    food = Category(name="food-drinks")

    assert coordinator.primary_url_for(food) == "https://p.test/api.php?cat=food-drinks&tags=true"
    assert coordinator.fallback_url_for(food) == "https://f.test/archive/food-drinks.json"


def test_unparseable_body_only_fails_its_own_category() -> None:
    reported = []
    coordinator, _ = _build(
        {
            primary(ALPHABET): "[" * 100000 + "]" * 100000,
            primary(ANIMALS): ANIMALS_BODY,
        },
        fallback_enabled=False,
    )

    result = asyncio.run(coordinator.refresh_all(on_failure=reported.append))

    assert result.ok is True
    assert result.snapshot[ALPHABET] == ()
    assert _dump(result.snapshot[ANIMALS]) == _expected(ANIMALS_BODY, ANIMALS)
    assert [f.category for f in reported] == ["alphabet"]
    assert isinstance(reported[0].primary_error, MalformedDataError)
