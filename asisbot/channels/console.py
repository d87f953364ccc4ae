"""Terminal channel for running the full bus pipeline locally."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from asisbot import __logo__
from asisbot.bus.events import OutboundMessage
from asisbot.bus.queue import MessageBus
from asisbot.channels.base import BaseChannel
from asisbot.errors import TransportError

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit", ":q"}


class ConsoleChannel(BaseChannel):
    """
    Reads lines from the terminal as one conversation and prints replies.

    Every line is published as an inbound message from ``sender_id`` in
    ``chat_id``, so directives and the admin list behave as they would on a
    real platform.
    """

    name = "console"

    def __init__(
        self,
        bus: MessageBus,
        sender_id: str = "console",
        chat_id: str = "console",
        chat_type: str = "private",
        console: Console | None = None,
        read_line: Callable[[], Awaitable[str]] | None = None,
        render_markdown: bool = True,
    ):
        super().__init__(bus)
        self.sender_id = sender_id
        self.chat_id = chat_id
        self.chat_type = chat_type
        self.console = console or Console()
        self.render_markdown = render_markdown
        self._read_line = read_line or self._prompt
        self._session: PromptSession | None = None

    async def _prompt(self) -> str:
        if self._session is None:
            self._session = PromptSession(multiline=False)
        with patch_stdout():
            return await self._session.prompt_async(HTML("<b fg='ansiblue'>You:</b> "))

    async def start(self) -> None:
        """Read until EOF, Ctrl+C or an exit command."""
        self._running = True
        logger.info(f"Console channel listening as {self.sender_id} in {self.chat_id}")
        while self._running:
            try:
                line = await self._read_line()
            except (EOFError, KeyboardInterrupt):
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_COMMANDS:
                break
            await self._handle_message(
                sender_id=self.sender_id,
                chat_id=self.chat_id,
                content=text,
                chat_type=self.chat_type,
            )
        self._running = False

    async def stop(self) -> None:
        self._running = False

    async def send(self, msg: OutboundMessage) -> None:
        body = Markdown(msg.content) if self.render_markdown else Text(msg.content)
        try:
            self.console.print()
            self.console.print(f"[cyan]{__logo__} asisbot[/cyan]")
            self.console.print(body)
            self.console.print()
        except OSError as e:
            raise TransportError(f"console write failed: {e}") from e

    async def send_typing(self, msg: OutboundMessage) -> None:
        self.console.print("[dim]asisbot sedang mengetik...[/dim]")
