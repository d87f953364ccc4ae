import asyncio
import json

import pytest

from asisbot.config.loader import camel_to_snake, load_config, save_config, snake_to_camel
from asisbot.config.state import BotState, BotStateStore
from asisbot.errors import PersistenceError
from asisbot.utils.atomic_io import AtomicFileWriter, write_text_atomic

_ENV_VARS = (
    "ASISBOT_MODEL", "ASISBOT_GROQ_API_KEY", "GROQ_API_KEY", "ASISBOT_GROQ_API_BASE",
    "ASISBOT_MEMORY_LIMIT", "ASISBOT_BRAVE_API_KEY", "ASISBOT_SEARCH_PROVIDER",
    "ASISBOT_TIMEZONE", "ASISBOT_DIRECTIVE_PREFIX", "ASISBOT_STATE_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults() -> None:
    state = BotState()

    assert state.bot_active and state.reply_active
    assert not state.respond_to_groups
    assert state.notify_non_admins
    assert not state.auto_read
    assert state.auto_typing
    assert state.owner is None


def test_load_missing_or_corrupt_file_gives_defaults(tmp_path) -> None:
    missing = BotStateStore.load(tmp_path / "nope.json")
    assert missing.state == BotState()

    corrupt = tmp_path / "state.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert BotStateStore.load(corrupt).state == BotState()

    corrupt.write_text("[1, 2]", encoding="utf-8")
    assert BotStateStore.load(corrupt).state == BotState()


def test_load_reads_camel_case_and_ignores_unknown_keys(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps({"botActive": False, "respondToGroups": True, "admins": ["628111", "628222"], "legacy": 1}),
        encoding="utf-8",
    )

    state = BotStateStore.load(path).state

    assert state.bot_active is False
    assert state.respond_to_groups is True
    assert state.admins == ("628111", "628222")
    assert state.owner == "628111"


def test_commit_installs_and_persists(tmp_path) -> None:
    path = tmp_path / "nested" / "state.json"
    store = BotStateStore(path, writer=AtomicFileWriter())

    async def scenario() -> BotState:
        async with store.transaction():
            return await store.commit(auto_read=True, admins=["628111"])

    state = asyncio.run(scenario())

    assert state is store.state
    assert state.admins == ("628111",)
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["autoRead"] is True
    assert on_disk["admins"] == ["628111"]
    assert BotStateStore.load(path).state == state
    assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_state_is_immutable() -> None:
    state = BotState()

    with pytest.raises(Exception):
        state.bot_active = False


def test_atomic_write_failure_raises_persistence_error(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(PersistenceError):
        write_text_atomic(blocker / "state.json", "{}")


def test_load_config_camel_case_file(tmp_path, clean_env) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({
            "agent": {"botName": "asis", "memoryLimit": 4},
            "tools": {"clock": {"timezone": "Asia/Makassar"}},
            "directives": {"prefix": "!"},
        }),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.agent.bot_name == "asis"
    assert config.agent.memory_limit == 4
    assert config.tools.clock.timezone == "Asia/Makassar"
    assert config.directives.prefix == "!"
    assert config.agent.model == "groq/llama-3.1-8b-instant"


def test_load_config_env_overrides(tmp_path, clean_env) -> None:
    clean_env.setenv("GROQ_API_KEY", "gsk-test")
    clean_env.setenv("ASISBOT_BRAVE_API_KEY", "brave-key")
    clean_env.setenv("ASISBOT_STATE_PATH", str(tmp_path / "s.json"))

    config = load_config(tmp_path / "missing.json")

    assert config.providers.groq.api_key == "gsk-test"
    assert config.tools.search.provider == "brave"
    assert config.tools.search.api_key == "brave-key"
    assert config.state_file == tmp_path / "s.json"


def test_bad_config_file_falls_back_to_defaults(tmp_path, clean_env) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops", encoding="utf-8")

    assert load_config(path).agent.bot_name == "asisbot"


def test_save_config_round_trip(tmp_path, clean_env) -> None:
    path = tmp_path / "config.json"
    config = load_config(path)
    config.agent.temperature = 0.2

    save_config(config, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["agent"]["temperature"] == 0.2
    assert "maxTokens" in raw["agent"]
    assert load_config(path).agent.temperature == 0.2


def test_case_helpers() -> None:
    assert camel_to_snake("notifyNonAdmins") == "notify_non_admins"
    assert snake_to_camel("respond_to_groups") == "respondToGroups"
