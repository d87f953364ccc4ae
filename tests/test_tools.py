import asyncio

import pytest
from conftest import FIXED_NOW, FakeWeather

from asisbot.agent.tools.calculator import CalculatorTool, evaluate, format_number
from asisbot.agent.tools.clock import ClockTool, format_id_timestamp
from asisbot.agent.tools.weather import (
    CITY_NOT_FOUND,
    WEATHER_FAILED,
    WeatherTool,
    city_from_reply,
    extract_city,
    looks_like_place,
)
from asisbot.errors import ValidationError


@pytest.mark.parametrize(
    ("text", "city"),
    [
        ("cuaca di jakarta", "Jakarta"),
        ("gimana cuaca di Jakarta?", "Jakarta"),
        ("cuaca di jakarta sekarang", "Jakarta"),
        ("cuaca di jakarta hari ini", "Jakarta"),
        ("weather in new york", "New York"),
        ("cuaca", None),
        ("cuaca hari ini", None),
        ("cuaca di sini", None),
        ("cuaca di sana sekarang", None),
    ],
)
def test_extract_city(text: str, city: str | None) -> None:
    assert extract_city(text) == city


def test_city_from_reply() -> None:
    assert city_from_reply("bandung") == "Bandung"
    assert city_from_reply("di surabaya dong") == "Surabaya"
    assert city_from_reply("Kuala Lumpur.") == "Kuala Lumpur"
    assert city_from_reply("123") is None
    assert city_from_reply("sekarang") is None
    assert city_from_reply("") is None


def test_looks_like_place_limits() -> None:
    assert looks_like_place("Yogyakarta")
    assert not looks_like_place("x")
    assert not looks_like_place("a" * 61)
    assert not looks_like_place("jakarta 2026")


def test_weather_tool_reports_conditions() -> None:
    tool = WeatherTool(FakeWeather())

    reply = asyncio.run(tool.execute(city="Jakarta"))

    assert reply == "🌦️ Cuaca sekarang di Jakarta\n• Suhu: 30.5°C\n• Angin: 12 km/jam"


def test_weather_tool_friendly_failures() -> None:
    assert asyncio.run(WeatherTool(FakeWeather()).execute(city="Atlantis")) == CITY_NOT_FOUND
    assert asyncio.run(WeatherTool(FakeWeather(fail=True)).execute(city="Jakarta")) == WEATHER_FAILED


def test_clock_formats_indonesian_timestamp() -> None:
    assert format_id_timestamp(FIXED_NOW) == "🕒 Sekarang Senin, 19 Oktober 2026\n⏰ Jam 14.05.09"
    assert asyncio.run(ClockTool(now=lambda: FIXED_NOW).execute()).startswith("🕒 Sekarang Senin")


@pytest.mark.parametrize(
    ("expr", "expected"),
    [
        ("12 x 3", 36),
        ("(2+3)^2", 25),
        ("7 / 2", 3.5),
        ("1,5 * 2", 3.0),
        ("10 ÷ 4", 2.5),
        ("-3 + 5", 2),
    ],
)
def test_evaluate(expr: str, expected: float) -> None:
    assert evaluate(expr) == expected


@pytest.mark.parametrize("expr", ["1 / 0", "2 ^ 1000", "__import__('os')", "", "2 +"])
def test_evaluate_rejects(expr: str) -> None:
    with pytest.raises(ValidationError):
        evaluate(expr)


def test_calculator_tool_output() -> None:
    tool = CalculatorTool()

    assert format_number(3.0) == "3"
    assert asyncio.run(tool.execute(expr="1,5 * 2")) == "🧮 1,5 * 2 = 3"
    assert asyncio.run(tool.execute(expr="1 / 0")) == "Hitungannya nggak bisa aku proses 😅"


@pytest.mark.parametrize(
    "expr",
    [
        "(9^99)^99",
        "(9,9^99)^99",
        "((((9^99)^99)^99)^99)^99",
        "10^60 x 10^60",
        "(-8)^0,5",
        "1e999 + 1",
    ],
)
def test_evaluate_rejects_results_out_of_range(expr: str) -> None:
    with pytest.raises(ValidationError):
        evaluate(expr)


def test_calculator_tool_large_results() -> None:
    tool = CalculatorTool()

    assert asyncio.run(tool.execute(expr="(9^99)^99")) == "Hitungannya nggak bisa aku proses 😅"
    assert asyncio.run(tool.execute(expr="(9,9^99)^99")) == "Hitungannya nggak bisa aku proses 😅"
    assert asyncio.run(tool.execute(expr="9^99")) == f"🧮 9^99 = {9**99}"
