"""Admin directives: ``.claim``, ``.bot on``, ``.admin add 62812…``, ``.status`` …

Only :class:`CommandRouter` mutates :class:`BotState`. Every directive runs
inside the store's writer transaction, so a check on the admin list and the
write that follows cannot interleave with another directive. Nothing raises
past :meth:`CommandRouter.handle`: validation problems and denials become
reply text (or silence), persistence failures are logged for the operator.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from loguru import logger

from asisbot.agent.memory import MemoryStore
from asisbot.bus.events import InboundMessage
from asisbot.config.state import BotState, BotStateStore
from asisbot.errors import AuthorizationDenied, PersistenceError, ValidationError
from asisbot.identity.policy import AuthorizationPolicy, normalize_identity
from asisbot.session.intents import SessionIntentState

# directive word -> BotState field
TOGGLES: dict[str, str] = {
    "bot": "bot_active",
    "reply": "reply_active",
    "group": "respond_to_groups",
    "notify": "notify_non_admins",
    "read": "auto_read",
    "typing": "auto_typing",
}

_ON = frozenset({"on", "1", "true", "yes", "ya", "aktif", "nyala"})
_OFF = frozenset({"off", "0", "false", "no", "tidak", "mati", "nonaktif"})

_NAME_RE = re.compile(r"^[a-z][a-z0-9_-]*$")
_ADMIN_ID_RE = re.compile(r"^\d{5,15}$")

DENIED = "⛔ Perintah ini khusus admin."
ACK = "✅ Oke."


@dataclass(frozen=True, slots=True)
class Directive:
    name: str
    args: list[str] = field(default_factory=list)
    raw: str = ""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one directive. ``reply`` None means stay silent."""

    reply: str | None
    denied: bool = False
    mutated: bool = False


def parse_switch(arg: str | None) -> bool:
    value = (arg or "").strip().lower()
    if value in _ON:
        return True
    if value in _OFF:
        return False
    raise ValidationError("pakai on atau off")


def parse_admin_id(arg: str | None) -> str:
    """Phone-like admin id: ``@+62 812-3456-789`` -> ``628123456789``."""
    raw = normalize_identity((arg or "").strip().lstrip("@"))
    digits = re.sub(r"[\s\-]", "", raw)
    if not _ADMIN_ID_RE.match(digits):
        raise ValidationError(f"nomor admin nggak valid: {arg or '(kosong)'}")
    return digits


def _onoff(value: bool) -> str:
    return "ON" if value else "OFF"


def render_status(state: BotState, conversations: int = 0, bot_name: str = "asisbot") -> str:
    owner = state.owner or "(belum di-claim)"
    return "\n".join([
        f"📊 Status {bot_name}",
        f"• Bot: {_onoff(state.bot_active)}",
        f"• Balas pesan: {_onoff(state.reply_active)}",
        f"• Respon grup: {_onoff(state.respond_to_groups)}",
        f"• Notif non-admin: {_onoff(state.notify_non_admins)}",
        f"• Auto read: {_onoff(state.auto_read)}",
        f"• Auto typing: {_onoff(state.auto_typing)}",
        f"• Owner: {owner}",
        f"• Jumlah admin: {len(state.admins)}",
        f"• Memori aktif: {conversations} percakapan",
    ])


class CommandRouter:
    """Parses and executes admin directives.

    Order inside :meth:`handle`: ownership claim, then ``ping``/``status``,
    then every other directive. ``ping`` is public; everything else except
    ``claim`` needs an admin.
    """

    def __init__(
        self,
        store: BotStateStore,
        policy: AuthorizationPolicy,
        memory: MemoryStore,
        intents: SessionIntentState,
        prefix: str = ".",
        bot_name: str = "asisbot",
    ):
        self.store = store
        self.policy = policy
        self.memory = memory
        self.intents = intents
        self.prefix = prefix
        self.bot_name = bot_name
        self._handlers: dict[str, Callable[[Directive, InboundMessage], Awaitable[CommandResult]]] = {
            "admin": self._admin,
            "clear": self._clear,
            "help": self._help,
        }

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: str) -> Directive | None:
        """Return a Directive if *text* starts with the prefix and a directive word."""
        stripped = (text or "").strip()
        if not stripped.startswith(self.prefix):
            return None
        body = stripped[len(self.prefix):].strip()
        parts = body.split()
        if not parts:
            return None
        name = parts[0].lower()
        if not _NAME_RE.match(name):
            return None
        return Directive(name=name, args=parts[1:], raw=stripped)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def handle(self, directive: Directive, msg: InboundMessage) -> CommandResult:
        async with self.store.transaction():
            try:
                if directive.name == "claim":
                    return await self._claim(msg)
                if directive.name == "ping":
                    return CommandResult("🏓 pong")
                self._authorize(msg)
                if directive.name == "status":
                    return CommandResult(render_status(self.store.state, len(self.memory), self.bot_name))
                if directive.name in TOGGLES:
                    return await self._toggle(directive)
                handler = self._handlers.get(directive.name)
                if handler is None:
                    # Unknown directive from an admin: acknowledged no-op.
                    logger.info(f"Unknown directive {directive.name!r} from {msg.sender_id}; ignored")
                    return CommandResult(ACK)
                return await handler(directive, msg)
            except AuthorizationDenied:
                logger.warning(f"Directive {directive.name!r} denied for {msg.sender_id} in {msg.chat_id}")
                notify = self.store.state.notify_non_admins and not (
                    msg.is_group and not self.policy.allow_in_groups
                )
                return CommandResult(DENIED if notify else None, denied=True)
            except ValidationError as exc:
                return CommandResult(f"⚠️ {exc}")

    def _authorize(self, msg: InboundMessage) -> None:
        if not self.policy.can_issue_directives(msg):
            raise AuthorizationDenied(msg.sender_id)

    async def _commit(self, **changes: object) -> None:
        try:
            await self.store.commit(**changes)
        except PersistenceError as exc:
            # In-memory state stays applied; persistence is best effort.
            logger.error(f"Bot state not persisted ({', '.join(changes)}): {exc}")

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    async def _claim(self, msg: InboundMessage) -> CommandResult:
        if msg.is_group and not self.policy.allow_in_groups:
            return CommandResult(None, denied=True)
        state = self.store.state
        if state.admins:
            return CommandResult("❌ Bot ini sudah ada owner-nya.")
        claimant = normalize_identity(msg.sender_id)
        if not claimant:
            raise ValidationError("identitas pengirim kosong")
        await self._commit(admins=[claimant])
        logger.info(f"Ownership claimed by {claimant}")
        return CommandResult(f"👑 Sip, {claimant} sekarang owner {self.bot_name}.", mutated=True)

    async def _toggle(self, directive: Directive) -> CommandResult:
        field_name = TOGGLES[directive.name]
        if not directive.args:
            raise ValidationError(f"format: {self.prefix}{directive.name} on|off")
        value = parse_switch(directive.args[0])
        await self._commit(**{field_name: value})
        logger.info(f"Toggle {field_name} -> {value}")
        return CommandResult(f"✅ {directive.name} {_onoff(value)}", mutated=True)

    async def _admin(self, directive: Directive, msg: InboundMessage) -> CommandResult:
        sub = directive.args[0].lower() if directive.args else "list"
        state = self.store.state

        if sub == "list":
            if not state.admins:
                return CommandResult("Belum ada admin.")
            lines = ["👥 Admin:"]
            for i, admin in enumerate(state.admins):
                lines.append(f"{i + 1}. {admin}{' (owner)' if i == 0 else ''}")
            return CommandResult("\n".join(lines))

        if sub not in ("add", "del", "rm", "remove"):
            raise ValidationError(f"format: {self.prefix}admin add|del|list <nomor>")
        raw_target = " ".join(directive.args[1:])
        # The owner may carry a non-phone id (e.g. "console"); protect it before validating.
        if sub != "add" and state.owner and normalize_identity(raw_target.strip().lstrip("@")) == state.owner:
            return CommandResult("❌ Owner nggak bisa dihapus.")
        target = parse_admin_id(raw_target)

        if sub == "add":
            if target in state.admins:
                return CommandResult(f"ℹ️ {target} sudah admin.")
            await self._commit(admins=[*state.admins, target])
            logger.info(f"Admin added: {target} by {msg.sender_id}")
            return CommandResult(f"✅ {target} jadi admin.", mutated=True)

        if state.owner == target:
            return CommandResult("❌ Owner nggak bisa dihapus.")
        if target not in state.admins:
            return CommandResult(f"ℹ️ {target} bukan admin.")
        remaining = [a for a in state.admins if a != target]
        if not remaining:
            return CommandResult("❌ Minimal harus ada satu admin.")
        await self._commit(admins=remaining)
        logger.info(f"Admin removed: {target} by {msg.sender_id}")
        return CommandResult(f"✅ {target} bukan admin lagi.", mutated=True)

    async def _clear(self, directive: Directive, msg: InboundMessage) -> CommandResult:
        self.memory.clear(msg.session_key)
        self.intents.clear(msg.session_key)
        return CommandResult("🧹 Memori percakapan ini sudah dihapus.")

    async def _help(self, directive: Directive, msg: InboundMessage) -> CommandResult:
        p = self.prefix
        return CommandResult("\n".join([
            "📖 Perintah admin:",
            f"{p}status — lihat status",
            f"{p}bot on|off — nyalakan/matikan bot",
            f"{p}reply on|off — balasan otomatis",
            f"{p}group on|off — respon di grup",
            f"{p}notify on|off — kabari non-admin yang ditolak",
            f"{p}read on|off — auto read",
            f"{p}typing on|off — auto typing",
            f"{p}admin list|add|del <nomor> — kelola admin",
            f"{p}clear — hapus memori percakapan ini",
            f"{p}ping — cek bot hidup",
        ]))
