"""Exception taxonomy shared by the dispatch pipeline.

Every failure the core can recover from derives from :class:`AsisbotError`,
so callers at the pipeline edge can catch one family and turn it into a
friendly reply.
"""

from __future__ import annotations


class AsisbotError(Exception):
    """Base class for all asisbot errors."""


class ValidationError(AsisbotError):
    """Malformed directive argument. Reported to the sender, never mutates."""


class AuthorizationDenied(AsisbotError):
    """A non-admin tried to run an admin directive."""


class ProviderError(AsisbotError):
    """Transport or data failure from an external provider."""


class ResponderError(ProviderError):
    """The generative responder could not produce an answer."""


class WeatherError(ProviderError):
    """Weather lookup failed (transport or malformed payload)."""


class SearchError(ProviderError):
    """Web search failed."""


class PersistenceError(AsisbotError):
    """Bot state could not be written to disk."""


class TransportError(AsisbotError):
    """A channel failed to deliver an outbound message."""
