from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from asisbot.agent.loop import DispatchEngine
from asisbot.bus.queue import MessageBus
from asisbot.config.schema import Config
from asisbot.config.state import BotState, BotStateStore
from asisbot.errors import SearchError, WeatherError
from asisbot.providers.base import LLMProvider
from asisbot.providers.weather import CityMatch, Conditions
from asisbot.utils.atomic_io import AtomicFileWriter

FIXED_NOW = datetime(2026, 10, 19, 14, 5, 9)


class FakeProvider(LLMProvider):
    """Scripted responder. The last reply repeats once the script runs out."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        super().__init__()
        self.replies = list(replies or ["Halo juga! 🙂"])
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system_prompt, history, user_message) -> str:
        self.calls.append({
            "system": system_prompt,
            "history": [dict(h) for h in history],
            "user": user_message,
        })
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]

    def get_default_model(self) -> str:
        return "fake/model"


class FakeWeather:
    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.fail = fail
        self.delay = delay
        self.calls: list[tuple[str, Any]] = []
        self.cities = {
            "jakarta": CityMatch("Jakarta", -6.2, 106.85),
            "bandung": CityMatch("Bandung", -6.91, 107.61),
        }

    async def resolve_city(self, name: str) -> CityMatch | None:
        self.calls.append(("resolve", name))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise WeatherError("boom")
        return self.cities.get(name.lower())

    async def current_conditions(self, latitude: float, longitude: float) -> Conditions:
        self.calls.append(("conditions", (latitude, longitude)))
        return Conditions(temperature_c=30.5, wind_kph=12.0)


class FakeSearch:
    def __init__(self, summary: str = "1. Kurs USD hari ini\n   https://example.com/kurs", error: Exception | None = None):
        self.summary = summary
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str) -> str:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.summary

    async def execute(self, query: str = "", **kwargs: Any) -> str:
        try:
            summary = await self.search(query)
        except SearchError:
            return "search failed"
        return summary or "nothing found"


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture
def make_store(state_file: Path):
    def _make(**fields: Any) -> BotStateStore:
        state = BotState(**fields) if fields else None
        return BotStateStore(state_file, state=state, writer=AtomicFileWriter())

    return _make


@pytest.fixture
def make_engine(make_store):
    """Build a DispatchEngine wired to fakes. Extra kwargs become BotState fields."""

    def _make(
        provider: FakeProvider | None = None,
        weather: FakeWeather | None = None,
        search: FakeSearch | None = None,
        config: Config | None = None,
        bus: MessageBus | None = None,
        **state_fields: Any,
    ) -> DispatchEngine:
        return DispatchEngine(
            bus=bus or MessageBus(),
            store=make_store(**state_fields),
            provider=provider or FakeProvider(),
            config=config or Config(),
            weather_provider=weather or FakeWeather(),
            search=search or FakeSearch(),
            now=lambda: FIXED_NOW,
        )

    return _make
