"""Weather lookup and city-name handling."""

import re
from typing import Any

from loguru import logger

from asisbot.agent.tools.base import Tool
from asisbot.errors import WeatherError
from asisbot.providers.weather import WeatherProvider

CITY_PROMPT = "Mau cek cuaca di kota mana? 🙂"
CITY_UNCLEAR = "Nama kotanya kurang jelas nih 😅 Coba tanya lagi, misalnya: cuaca di Bandung"
CITY_NOT_FOUND = "Kota-nya belum ketemu 😅"
WEATHER_FAILED = "Gagal ambil data cuaca 😅"

# Words that can trail "di/in/at" without naming a place.
GENERIC_PLACE_WORDS = frozenset({
    "now", "today", "tomorrow", "tonight", "here", "there",
    "sekarang", "hari", "ini", "besok", "lusa", "nanti", "sini", "situ", "sana",
    "mana", "luar", "rumah", "kantor", "pagi", "siang", "sore", "malam",
    "dong", "ya", "yah", "deh", "gimana", "bagaimana",
})

_TRAILING_PLACE_RE = re.compile(
    r".*\b(?:di|in|at)\s+(?P<city>[^\W\d_][\w\s'.\-]*)$",
    re.IGNORECASE,
)
_PLACE_NAME_RE = re.compile(r"[^\W\d_](?:[^\W\d_]|[\s'.\-])*")


def _title(name: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in name.split())


def extract_city(text: str) -> str | None:
    """City from a trailing ``di|in|at <city>`` phrase, or None.

    Trailing generic words are dropped (``"di jakarta sekarang"`` ->
    ``"Jakarta"``); a phrase made only of generic words yields None.
    """
    m = _TRAILING_PLACE_RE.match((text or "").strip().rstrip(" ?!.,"))
    if not m:
        return None
    tokens = m.group("city").split()
    while tokens and tokens[-1].lower().strip(".,'") in GENERIC_PLACE_WORDS:
        tokens.pop()
    if not tokens or all(t.lower() in GENERIC_PLACE_WORDS for t in tokens):
        return None
    return _title(" ".join(tokens))


def looks_like_place(name: str) -> bool:
    """Letters, spaces and ``-'.`` only, 2-60 chars, not just generic words."""
    candidate = (name or "").strip()
    if not 2 <= len(candidate) <= 60:
        return False
    if not _PLACE_NAME_RE.fullmatch(candidate):
        return False
    return not all(t.lower() in GENERIC_PLACE_WORDS for t in candidate.split())


def city_from_reply(text: str) -> str | None:
    """Interpret a reply to the city prompt. None when it is not a usable name."""
    city = extract_city(text)
    if city:
        return city
    candidate = (text or "").strip().strip(" ?!.,")
    if not looks_like_place(candidate):
        return None
    return _title(candidate)


def format_conditions(city: str, temperature_c: float, wind_kph: float) -> str:
    return (
        f"🌦️ Cuaca sekarang di {city}\n"
        f"• Suhu: {temperature_c:g}°C\n"
        f"• Angin: {wind_kph:g} km/jam"
    )


class WeatherTool(Tool):
    """Resolve a city and report its current conditions."""

    name = "weather"
    description = "Current temperature and wind for a city."

    def __init__(self, provider: WeatherProvider):
        self.provider = provider

    async def execute(self, city: str = "", **kwargs: Any) -> str:
        try:
            match = await self.provider.resolve_city(city)
            if match is None:
                logger.info(f"Weather: city not found: {city!r}")
                return CITY_NOT_FOUND
            cond = await self.provider.current_conditions(match.latitude, match.longitude)
        except WeatherError as exc:
            logger.warning(f"Weather lookup failed for {city!r}: {exc}")
            return WEATHER_FAILED
        return format_conditions(match.display_name, cond.temperature_c, cond.wind_kph)
