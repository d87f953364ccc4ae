"""Open-Meteo weather provider (no API key required)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from loguru import logger

from asisbot.errors import WeatherError


@dataclass(frozen=True, slots=True)
class CityMatch:
    display_name: str
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Conditions:
    temperature_c: float
    wind_kph: float


class WeatherProvider(Protocol):
    async def resolve_city(self, name: str) -> CityMatch | None: ...

    async def current_conditions(self, latitude: float, longitude: float) -> Conditions: ...


class OpenMeteoProvider:
    """Geocoding + current weather from open-meteo.com.

    ``resolve_city`` returns ``None`` for an unknown place; every transport or
    payload problem raises :class:`WeatherError`.
    """

    def __init__(
        self,
        geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search",
        forecast_url: str = "https://api.open-meteo.com/v1/forecast",
        language: str = "id",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.geocoding_url = geocoding_url
        self.forecast_url = forecast_url
        self.language = language
        self.timeout = timeout
        self._transport = transport

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, params=params)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Open-Meteo request to {url} failed: {exc}")
            raise WeatherError(str(exc)) from exc
        if not isinstance(data, dict):
            raise WeatherError(f"unexpected payload from {url}")
        return data

    async def resolve_city(self, name: str) -> CityMatch | None:
        data = await self._get_json(
            self.geocoding_url,
            {"name": name, "count": 1, "language": self.language},
        )
        results = data.get("results") or []
        if not results:
            return None
        top = results[0]
        try:
            return CityMatch(
                display_name=str(top.get("name") or name),
                latitude=float(top["latitude"]),
                longitude=float(top["longitude"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise WeatherError(f"bad geocoding result: {exc}") from exc

    async def current_conditions(self, latitude: float, longitude: float) -> Conditions:
        data = await self._get_json(
            self.forecast_url,
            {"latitude": latitude, "longitude": longitude, "current_weather": "true"},
        )
        current = data.get("current_weather") or {}
        try:
            return Conditions(
                temperature_c=float(current["temperature"]),
                wind_kph=float(current["windspeed"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise WeatherError(f"bad forecast payload: {exc}") from exc
