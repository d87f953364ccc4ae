"""Natural-language intent rules."""

from asisbot.nl.intent_engine import Intent, IntentEngine, IntentRule

__all__ = ["Intent", "IntentEngine", "IntentRule"]
