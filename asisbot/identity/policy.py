"""Admin / owner determination.

Authorization is recomputed for every message from the current admin list;
nothing about a sender's role is cached.
"""

from __future__ import annotations

from collections.abc import Callable

from asisbot.bus.events import InboundMessage
from asisbot.config.state import BotState


def normalize_identity(raw: str) -> str:
    """Reduce a transport identity to its stable user part.

    ``"628123456789:12@s.whatsapp.net"`` -> ``"628123456789"``. Only transport
    decorations are removed, so non-phone ids such as ``"console"`` survive.
    """
    ident = (raw or "").strip()
    ident = ident.split("@", 1)[0]
    ident = ident.split(":", 1)[0]
    return ident.lstrip("+")


class AuthorizationPolicy:
    """Pure checks over ``BotState.admins``.

    Takes a zero-arg accessor rather than a state object so every call sees
    the state installed by the most recent directive.
    """

    def __init__(self, state: Callable[[], BotState], allow_in_groups: bool = True) -> None:
        self._state = state
        self.allow_in_groups = allow_in_groups

    def is_admin(self, sender_id: str) -> bool:
        return normalize_identity(sender_id) in self._state().admins

    def is_owner(self, sender_id: str) -> bool:
        owner = self._state().owner
        return owner is not None and normalize_identity(sender_id) == owner

    def can_issue_directives(self, msg: InboundMessage) -> bool:
        """Whether *msg* may run admin directives at all.

        Group directives use the participant id (``sender_id``) against the
        same admin list, unless group directives are disabled.
        """
        if msg.is_group and not self.allow_in_groups:
            return False
        return self.is_admin(msg.sender_id)
