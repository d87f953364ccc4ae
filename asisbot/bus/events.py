"""Event types for the message bus."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class InboundMessage:
    """Message received from a chat channel."""

    channel: str  # whatsapp, console, …
    sender_id: str  # author identity (participant id inside groups)
    chat_id: str  # conversation id; all per-conversation state is keyed by it
    content: str  # message text
    chat_type: str = "private"  # "private" | "group"
    from_self: bool = False  # echo of the bot's own outgoing message
    timestamp: datetime = field(default_factory=datetime.now)
    message_id: str = ""
    sender_name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)  # channel-specific data

    @property
    def is_group(self) -> bool:
        return self.chat_type == "group"

    @property
    def session_key(self) -> str:
        """Key for per-conversation state and serialization."""
        return f"{self.channel}:{self.chat_id}"


@dataclass
class OutboundMessage:
    """Message or presence hint to send to a chat channel."""

    channel: str
    chat_id: str
    content: str = ""
    # "text" is a reply; "read" and "typing" are presence hints that
    # channels may ignore.
    kind: str = "text"
    reply_to: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
