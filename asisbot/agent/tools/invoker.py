"""Deterministic tool execution, including the weather slot-filling state machine.

Per conversation the weather flow is either Idle (no pending intent) or
AwaitingCity (``AwaitingCityForWeather`` pending):

- Idle + weather request with a city  -> lookup, stay Idle.
- Idle + weather request without one  -> prompt once, go to AwaitingCity.
- AwaitingCity + any next message     -> try it as a city, back to Idle.

The caller consumes the pending intent before handing the follow-up to
:meth:`ToolInvoker.resolve_pending`, so a bad answer never re-prompts.
"""

from loguru import logger

from asisbot.agent.tools.calculator import CalculatorTool
from asisbot.agent.tools.clock import ClockTool
from asisbot.agent.tools.weather import (
    CITY_PROMPT,
    CITY_UNCLEAR,
    WeatherTool,
    city_from_reply,
    extract_city,
)
from asisbot.agent.tools.web import WebSearchTool
from asisbot.nl.intent_engine import MATH, SEARCH, TIME, WEATHER, Intent
from asisbot.session.intents import AwaitingCityForWeather, PendingIntent, SessionIntentState

TOOL_INTENTS = frozenset({TIME, WEATHER, MATH, SEARCH})


class ToolInvoker:
    def __init__(
        self,
        intents: SessionIntentState,
        clock: ClockTool,
        weather: WeatherTool,
        calculator: CalculatorTool,
        search: WebSearchTool,
    ):
        self.intents = intents
        self.clock = clock
        self.weather = weather
        self.calculator = calculator
        self.search = search

    def handles(self, intent: Intent) -> bool:
        return intent.name in TOOL_INTENTS

    def needs_network(self, intent: Intent) -> bool:
        return intent.name in (WEATHER, SEARCH)

    async def invoke(self, key: str, intent: Intent, text: str) -> str | None:
        """Run the tool for *intent*. Returns None for intents no tool handles."""
        if intent.name == TIME:
            return await self.clock.execute()
        if intent.name == WEATHER:
            return await self._weather_request(key, text)
        if intent.name == MATH:
            return await self.calculator.execute(expr=intent.slots.get("expr", text))
        if intent.name == SEARCH:
            return await self.search.execute(query=intent.slots.get("query", text))
        return None

    async def _weather_request(self, key: str, text: str) -> str:
        city = extract_city(text)
        if city is None:
            self.intents.set(key, AwaitingCityForWeather(original_text=text))
            logger.info(f"Weather request without city in {key}; awaiting city")
            return CITY_PROMPT
        return await self.weather.execute(city=city)

    async def resolve_pending(self, key: str, pending: PendingIntent, text: str) -> str:
        """Answer the follow-up to a slot prompt. *pending* is already consumed."""
        if isinstance(pending, AwaitingCityForWeather):
            city = city_from_reply(text)
            if city is None:
                logger.info(f"Reply in {key} is not a place name; dropping weather request")
                return CITY_UNCLEAR
            return await self.weather.execute(city=city)
        raise TypeError(f"unknown pending intent: {pending!r}")
