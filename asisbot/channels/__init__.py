"""Chat channels module with plugin architecture."""

from asisbot.channels.base import BaseChannel
from asisbot.channels.console import ConsoleChannel
from asisbot.channels.manager import ChannelManager

__all__ = ["BaseChannel", "ChannelManager", "ConsoleChannel"]
