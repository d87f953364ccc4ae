"""Per-conversation pending slot tracking."""

from asisbot.session.intents import AwaitingCityForWeather, PendingIntent, SessionIntentState

__all__ = ["AwaitingCityForWeather", "PendingIntent", "SessionIntentState"]
