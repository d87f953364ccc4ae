"""Current date/time in Indonesian."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from asisbot.agent.tools.base import Tool

_DAYS = ("Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu")
_MONTHS = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)


def format_id_timestamp(now: datetime) -> str:
    """``🕒 Sekarang Senin, 19 Oktober 2026\\n⏰ Jam 14.05.09``"""
    date_part = f"{_DAYS[now.weekday()]}, {now.day} {_MONTHS[now.month - 1]} {now.year}"
    time_part = f"{now.hour:02d}.{now.minute:02d}.{now.second:02d}"
    return f"🕒 Sekarang {date_part}\n⏰ Jam {time_part}"


class ClockTool(Tool):
    """Formats the current time. Never touches the network."""

    name = "clock"
    description = "Current local date and time."

    def __init__(self, timezone: str = "Asia/Jakarta", now: Callable[[], datetime] | None = None):
        self.tz = ZoneInfo(timezone)
        self._now = now or (lambda: datetime.now(self.tz))

    async def execute(self, **kwargs: Any) -> str:
        return format_id_timestamp(self._now())
