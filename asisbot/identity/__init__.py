"""Sender identity and admin authorization."""

from asisbot.identity.policy import AuthorizationPolicy, normalize_identity

__all__ = ["AuthorizationPolicy", "normalize_identity"]
