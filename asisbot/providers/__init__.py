"""External provider clients: generative responder and weather."""

from asisbot.providers.base import LLMProvider
from asisbot.providers.litellm_provider import LiteLLMProvider
from asisbot.providers.weather import CityMatch, Conditions, OpenMeteoProvider, WeatherProvider

__all__ = [
    "CityMatch",
    "Conditions",
    "LLMProvider",
    "LiteLLMProvider",
    "OpenMeteoProvider",
    "WeatherProvider",
]
