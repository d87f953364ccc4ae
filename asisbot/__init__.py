"""asisbot - casual chat assistant with admin directives, tools and AI fallback."""

__version__ = "0.3.0"
__logo__ = "🤖"
