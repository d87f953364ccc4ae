import asyncio
import io

import pytest
from rich.console import Console
from typer.testing import CliRunner

from asisbot import __version__
from asisbot.bus.events import InboundMessage, OutboundMessage
from asisbot.bus.queue import MessageBus
from asisbot.channels.base import BaseChannel
from asisbot.channels.console import ConsoleChannel
from asisbot.channels.manager import ChannelManager
from asisbot.cli.commands import app
from asisbot.config.state import BotState
from asisbot.errors import TransportError
from asisbot.identity.policy import AuthorizationPolicy, normalize_identity
from asisbot.runtime.session_lock import SessionLock, SessionLockTimeout


class _RecordingChannel(BaseChannel):
    name = "rec"

    def __init__(self, bus: MessageBus, fail_on: str = ""):
        super().__init__(bus)
        self.fail_on = fail_on
        self.sent: list[str] = []
        self.typing = 0

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def send(self, msg: OutboundMessage) -> None:
        if msg.content == self.fail_on:
            raise TransportError("socket closed")
        self.sent.append(msg.content)

    async def send_typing(self, msg: OutboundMessage) -> None:
        self.typing += 1


# -- identity ---------------------------------------------------------------


def test_normalize_identity() -> None:
    assert normalize_identity("628123:7@s.whatsapp.net") == "628123"
    assert normalize_identity("+628123") == "628123"
    assert normalize_identity(" console ") == "console"
    assert normalize_identity("") == ""


def test_policy_reads_current_state() -> None:
    state = {"value": BotState(admins=("628111", "628222"))}
    policy = AuthorizationPolicy(lambda: state["value"])

    assert policy.is_owner("628111@s.whatsapp.net")
    assert policy.is_admin("628222")
    assert not policy.is_owner("628222")

    state["value"] = BotState(admins=("628222",))
    assert not policy.is_admin("628111")
    assert policy.is_owner("628222")


def test_group_directives_use_participant_id() -> None:
    state = BotState(admins=("628111",))
    msg = InboundMessage(channel="wa", sender_id="628111@s.whatsapp.net", chat_id="g1@g.us", content=".status", chat_type="group")

    assert AuthorizationPolicy(lambda: state).can_issue_directives(msg)
    assert not AuthorizationPolicy(lambda: state, allow_in_groups=False).can_issue_directives(msg)


# -- session lock -----------------------------------------------------------


def test_session_lock_serializes_one_key() -> None:
    lock = SessionLock()
    events: list[str] = []

    async def worker(name: str, key: str) -> None:
        async with lock.acquire(key):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    async def scenario() -> None:
        await asyncio.gather(worker("a", "k"), worker("b", "k"))

    asyncio.run(scenario())

    assert events == ["a:start", "a:end", "b:start", "b:end"]
    assert not lock.is_busy("k")
    assert lock._local == {}


def test_session_lock_allows_other_keys_concurrently() -> None:
    lock = SessionLock()

    async def scenario() -> bool:
        async with lock.acquire("k1"):
            async with lock.acquire("k2", timeout=0.1):
                return lock.is_busy("k1") and lock.is_busy("k2")

    assert asyncio.run(scenario())


def test_session_lock_timeout() -> None:
    lock = SessionLock()

    async def scenario() -> None:
        async with lock.acquire("k"):
            with pytest.raises(SessionLockTimeout):
                async with lock.acquire("k", timeout=0.01):
                    pass

    asyncio.run(scenario())
    assert lock._waiters == {}


# -- channels ---------------------------------------------------------------


def test_console_channel_publishes_lines_until_exit() -> None:
    bus = MessageBus()
    lines = iter(["halo", "   ", ".claim", "exit", "never read"])

    async def read_line() -> str:
        return next(lines)

    channel = ConsoleChannel(bus, sender_id="628111", chat_id="dev", read_line=read_line,
                             console=Console(file=io.StringIO()))

    asyncio.run(channel.start())

    published = [bus.inbound.get_nowait() for _ in range(bus.inbound_size)]
    assert [m.content for m in published] == ["halo", ".claim"]
    assert published[0].channel == "console"
    assert published[0].sender_id == "628111"
    assert published[0].session_key == "console:dev"
    assert not channel.is_running


def test_console_channel_stops_on_eof_and_prints_replies() -> None:
    out = io.StringIO()

    async def read_line() -> str:
        raise EOFError

    channel = ConsoleChannel(MessageBus(), read_line=read_line, console=Console(file=out), render_markdown=False)

    asyncio.run(channel.start())
    asyncio.run(channel.deliver(OutboundMessage(channel="console", chat_id="console", content="Halo juga!")))

    assert "Halo juga!" in out.getvalue()


def test_channel_manager_routes_and_survives_transport_errors() -> None:
    bus = MessageBus()
    manager = ChannelManager(bus)
    channel = _RecordingChannel(bus, fail_on="rusak")
    manager.register(channel)

    async def scenario() -> None:
        await manager.start_all()
        for msg in (
            OutboundMessage(channel="rec", chat_id="c1", content="rusak"),
            OutboundMessage(channel="rec", chat_id="c1", kind="typing"),
            OutboundMessage(channel="nowhere", chat_id="c1", content="hilang"),
            OutboundMessage(channel="rec", chat_id="c1", content="satu"),
        ):
            await bus.publish_outbound(msg)
        for _ in range(200):
            if channel.sent:
                break
            await asyncio.sleep(0.01)
        await manager.stop_all()

    asyncio.run(scenario())

    assert channel.sent == ["satu"]
    assert channel.typing == 1
    assert not channel.is_running


def test_base_channel_marks_own_messages() -> None:
    bus = MessageBus()
    channel = _RecordingChannel(bus)
    channel.bot_id = "628000"

    asyncio.run(channel._handle_message("628000", "c1", "echo"))
    asyncio.run(channel._handle_message("628111", "c1", "halo", chat_type="group"))

    own, other = bus.inbound.get_nowait(), bus.inbound.get_nowait()
    assert own.from_self
    assert not other.from_self
    assert other.is_group


# -- cli --------------------------------------------------------------------


def test_cli_version() -> None:
    result = CliRunner().invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"asisbot v{__version__}" in result.output
