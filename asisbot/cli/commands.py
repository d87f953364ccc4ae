"""CLI commands for asisbot."""

import asyncio
import sys
from contextlib import nullcontext

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from rich.text import Text

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout

from asisbot import __logo__, __version__

app = typer.Typer(
    name="asisbot",
    help=f"{__logo__} asisbot - casual chat assistant",
    no_args_is_help=True,
)

console = Console()
EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit", ":q"}

_PROMPT_SESSION: PromptSession | None = None


def _init_prompt_session() -> None:
    """Create the prompt_toolkit session with persistent file history."""
    global _PROMPT_SESSION
    from asisbot.utils.helpers import ensure_dir, get_data_path

    history_dir = ensure_dir(get_data_path() / "history")
    _PROMPT_SESSION = PromptSession(
        history=FileHistory(str(history_dir / "cli_history")),
        enable_open_in_editor=False,
        multiline=False,
    )


async def _read_interactive_input_async() -> str:
    if _PROMPT_SESSION is None:
        raise RuntimeError("Call _init_prompt_session() first")
    try:
        with patch_stdout():
            return await _PROMPT_SESSION.prompt_async(HTML("<b fg='ansiblue'>You:</b> "))
    except EOFError as exc:
        raise KeyboardInterrupt from exc


def _print_response(response: str, render_markdown: bool) -> None:
    if not response:
        console.print("[dim](tidak ada balasan)[/dim]")
        return
    body = Markdown(response) if render_markdown else Text(response)
    console.print()
    console.print(f"[cyan]{__logo__} asisbot[/cyan]")
    console.print(body)
    console.print()


def _setup_logging(enabled: bool) -> None:
    """Route asisbot logs to stderr at the configured level, or silence them."""
    from loguru import logger
    from asisbot.settings import get_settings

    if not enabled:
        logger.disable("asisbot")
        return
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else settings.log_level)
    logger.enable("asisbot")


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} asisbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """asisbot - casual chat assistant."""
    pass


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """Initialize asisbot configuration and state."""
    from asisbot.config.loader import get_config_path, save_config
    from asisbot.config.schema import Config
    from asisbot.config.state import BotStateStore

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    state_file = config.state_file
    if not state_file.exists():
        asyncio.run(BotStateStore(state_file).save())
        console.print(f"[green]✓[/green] Created bot state at {state_file}")

    console.print(f"\n{__logo__} asisbot is ready!")
    console.print("\nNext steps:")
    console.print("  1. Add your Groq API key to [cyan]~/.asisbot/config.json[/cyan] or GROQ_API_KEY")
    console.print("     Get one at: https://console.groq.com/keys")
    console.print("  2. Chat: [cyan]asisbot chat -m \"halo!\"[/cyan]")
    console.print("  3. Claim the bot: [cyan]asisbot chat -m \".claim\"[/cyan]")


def _make_provider(config):
    """Create LiteLLMProvider from config. Exits if no API key found."""
    from asisbot.providers.litellm_provider import LiteLLMProvider

    groq = config.providers.groq
    if not groq.api_key:
        console.print("[red]Error: No API key configured.[/red]")
        console.print("Set providers.groq.apiKey in ~/.asisbot/config.json or GROQ_API_KEY")
        raise typer.Exit(1)
    return LiteLLMProvider(
        api_key=groq.api_key,
        api_base=groq.api_base,
        default_model=config.agent.model,
        temperature=config.agent.temperature,
        max_tokens=config.agent.max_tokens,
        timeout=config.agent.request_timeout,
    )


def _make_engine(config, bus):
    from asisbot.agent.loop import DispatchEngine
    from asisbot.config.state import BotStateStore
    from asisbot.settings import get_settings

    settings = get_settings()
    return DispatchEngine(
        bus=bus,
        store=BotStateStore.load(config.state_file),
        provider=_make_provider(config),
        config=config,
        max_concurrent_workers=settings.max_concurrent_workers,
        lock_timeout=settings.session_lock_timeout,
    )


# ============================================================================
# Chat
# ============================================================================


@app.command()
def chat(
    message: str = typer.Option(None, "--message", "-m", help="Message to send to the bot"),
    sender: str = typer.Option("console", "--sender", "-s", help="Sender identity (e.g. a phone number)"),
    chat_id: str = typer.Option("console", "--chat", "-c", help="Conversation id"),
    group: bool = typer.Option(False, "--group", help="Treat the conversation as a group chat"),
    markdown: bool = typer.Option(True, "--markdown/--no-markdown", help="Render replies as Markdown"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show asisbot runtime logs during chat"),
):
    """Talk to the bot directly, as one sender in one conversation."""
    from asisbot.bus.queue import MessageBus
    from asisbot.config.loader import load_config

    _setup_logging(logs)
    config = load_config()
    engine = _make_engine(config, MessageBus())
    chat_type = "group" if group else "private"

    def _thinking_ctx():
        if logs:
            return nullcontext()
        return console.status("[dim]asisbot is thinking...[/dim]", spinner="dots")

    async def _ask(text: str) -> str:
        with _thinking_ctx():
            return await engine.process_direct(
                text, chat_id=chat_id, sender_id=sender, chat_type=chat_type,
            )

    if message:
        async def run_once():
            _print_response(await _ask(message), render_markdown=markdown)

        asyncio.run(run_once())
        return

    _init_prompt_session()
    console.print(f"{__logo__} Interactive mode (type [bold]exit[/bold] or [bold]Ctrl+C[/bold] to quit)\n")

    async def run_interactive():
        while True:
            try:
                user_input = await _read_interactive_input_async()
            except KeyboardInterrupt:
                console.print("\nGoodbye!")
                break
            command = user_input.strip()
            if not command:
                continue
            if command.lower() in EXIT_COMMANDS:
                console.print("\nGoodbye!")
                break
            _print_response(await _ask(command), render_markdown=markdown)

    asyncio.run(run_interactive())


# ============================================================================
# Run (bus + workers + console channel)
# ============================================================================


@app.command()
def run(
    sender: str = typer.Option("console", "--sender", "-s", help="Sender identity"),
    chat_id: str = typer.Option("console", "--chat", "-c", help="Conversation id"),
    group: bool = typer.Option(False, "--group", help="Treat the conversation as a group chat"),
    verbose: bool = typer.Option(False, "--verbose", help="Show runtime logs"),
):
    """Run the dispatch engine with its worker pool behind the console channel."""
    from loguru import logger
    from asisbot.bus.queue import MessageBus
    from asisbot.channels.console import ConsoleChannel
    from asisbot.channels.manager import ChannelManager
    from asisbot.config.loader import load_config

    _setup_logging(verbose)
    config = load_config()
    bus = MessageBus()
    engine = _make_engine(config, bus)

    manager = ChannelManager(bus)
    manager.register(ConsoleChannel(
        bus,
        sender_id=sender,
        chat_id=chat_id,
        chat_type="group" if group else "private",
        console=console,
    ))

    console.print(f"{__logo__} asisbot running (type [bold]exit[/bold] to quit)\n")

    async def run_all():
        engine_task = asyncio.create_task(engine.run())
        try:
            # Returns when the console channel reaches EOF or an exit command.
            await manager.start_all()
            # Messages already taken by a worker finish before the replies drain.
            await bus.wait_inbound_handled()
            while bus.outbound_size:
                await asyncio.sleep(0.1)
        finally:
            engine.stop()
            await asyncio.gather(engine_task, return_exceptions=True)
            await manager.stop_all()
            logger.info("asisbot stopped")

    try:
        asyncio.run(run_all())
    except KeyboardInterrupt:
        console.print("\nGoodbye!")


# ============================================================================
# Status
# ============================================================================


@app.command()
def status():
    """Show asisbot configuration and bot state."""
    from asisbot.config.loader import get_config_path, load_config
    from asisbot.config.state import BotStateStore

    config_path = get_config_path()
    config = load_config()
    state_file = config.state_file

    console.print(f"{__logo__} asisbot Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"State: {state_file} {'[green]✓[/green]' if state_file.exists() else '[red]✗[/red]'}")
    console.print(f"Model: {config.agent.model}")
    has_key = bool(config.providers.groq.api_key)
    console.print(f"Groq: {'[green]✓[/green]' if has_key else '[dim]not set[/dim]'}")
    console.print(f"Search: {config.tools.search.provider}")
    console.print(f"Timezone: {config.tools.clock.timezone}")

    state = BotStateStore.load(state_file).state
    table = Table(title="Bot State")
    table.add_column("Switch", style="cyan")
    table.add_column("Value", style="green")
    for label, value in (
        ("botActive", state.bot_active),
        ("replyActive", state.reply_active),
        ("respondToGroups", state.respond_to_groups),
        ("notifyNonAdmins", state.notify_non_admins),
        ("autoRead", state.auto_read),
        ("autoTyping", state.auto_typing),
    ):
        table.add_row(label, "✓" if value else "✗")
    table.add_row("owner", state.owner or "-")
    table.add_row("admins", ", ".join(state.admins) or "-")
    console.print(table)


if __name__ == "__main__":
    app()
