import asyncio

from conftest import FakeProvider, FakeSearch

from asisbot.agent.escalator import (
    AI_UNAVAILABLE,
    SEARCH_EMPTY,
    SEARCH_FAILED,
    ResponseEscalator,
    build_system_prompt,
    is_low_confidence,
)
from asisbot.agent.memory import MemoryStore
from asisbot.config.schema import AgentConfig, ConfidenceConfig
from asisbot.errors import ResponderError, SearchError

KEY = "wa:c1"


def _escalator(provider=None, search=None, memory=None) -> ResponseEscalator:
    return ResponseEscalator(
        provider=provider if provider is not None else FakeProvider(),
        memory=memory if memory is not None else MemoryStore(),
        search=search if search is not None else FakeSearch(),
    )


def test_confident_answer_is_returned_and_remembered() -> None:
    provider = FakeProvider(["Ibu kota Jepang itu Tokyo 🗼"])
    esc = _escalator(provider=provider)

    reply = asyncio.run(esc.respond(KEY, "ibu kota jepang apa?"))

    assert reply == "Ibu kota Jepang itu Tokyo 🗼"
    assert provider.calls[0]["history"] == []
    assert provider.calls[0]["user"] == "ibu kota jepang apa?"
    assert "asisbot" in provider.calls[0]["system"]
    assert esc.memory.get(KEY) == [
        {"role": "user", "content": "ibu kota jepang apa?"},
        {"role": "assistant", "content": "Ibu kota Jepang itu Tokyo 🗼"},
    ]


def test_hedging_answer_is_replaced_by_framed_search() -> None:
    search = FakeSearch(summary="1. Tokyo - Wikipedia")
    esc = _escalator(provider=FakeProvider(["maaf aku kurang yakin"]), search=search)

    reply = asyncio.run(esc.respond(KEY, "ibu kota jepang"))

    assert reply == "Bentar, aku cek dulu ya 🔎\n1. Tokyo - Wikipedia"
    assert esc.memory.get(KEY)[-1] == {"role": "assistant", "content": reply}


def test_realtime_question_skips_responder() -> None:
    provider = FakeProvider()
    search = FakeSearch(summary="1. Kurs USD 16.000")
    esc = _escalator(provider=provider, search=search)

    reply = asyncio.run(esc.respond(KEY, "kurs dolar hari ini"))

    assert reply == "🔎 Hasil pencarian:\n1. Kurs USD 16.000"
    assert provider.calls == []
    assert search.queries == ["kurs dolar hari ini"]


def test_responder_failure_records_no_assistant_turn() -> None:
    esc = _escalator(provider=FakeProvider(error=ResponderError("rate limited")))

    reply = asyncio.run(esc.respond(KEY, "halo"))

    assert reply == AI_UNAVAILABLE
    assert esc.memory.get(KEY) == [{"role": "user", "content": "halo"}]


def test_search_failures_in_fallback() -> None:
    failing = _escalator(
        provider=FakeProvider([""]),
        search=FakeSearch(error=SearchError("down")),
    )
    empty = _escalator(provider=FakeProvider(["?"]), search=FakeSearch(summary=""))

    assert asyncio.run(failing.respond(KEY, "apa itu x")) == SEARCH_FAILED
    assert asyncio.run(empty.respond(KEY, "apa itu y")) == SEARCH_EMPTY


def test_history_is_bounded_by_memory_limit() -> None:
    provider = FakeProvider(["oke"])
    esc = _escalator(provider=provider, memory=MemoryStore(limit=4))

    for i in range(4):
        asyncio.run(esc.respond(KEY, f"pesan {i}"))

    assert len(provider.calls[-1]["history"]) == 4
    assert provider.calls[-1]["history"][0] == {"role": "user", "content": "pesan 1"}


def test_is_low_confidence() -> None:
    policy = ConfidenceConfig()

    assert is_low_confidence(None, policy)
    assert is_low_confidence("  ", policy)
    assert is_low_confidence("ok", policy)
    assert is_low_confidence("Sorry, I don't know", policy)
    assert not is_low_confidence("Tokyo adalah ibu kota Jepang", policy)


def test_system_prompt_names_the_bot() -> None:
    assert "Kamu adalah asis" in build_system_prompt(AgentConfig(bot_name="asis"))
