from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from .validation import format_timestamp


@dataclass(frozen=True)
class MonthlyStat:
    month: str
    total_in: int = 0
    total_out: int = 0

    @property
    def net(self) -> int:
        return self.total_in - self.total_out


@dataclass(frozen=True)
class OverallStat:
    total_in: int = 0
    total_out: int = 0
    tx_count: int = 0

    @property
    def net(self) -> int:
        return self.total_in - self.total_out


@dataclass(frozen=True)
class MonthWindow:
    label: str
    start: str
    end: str


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_start(year: int, month: int) -> str:
    return format_timestamp(datetime(year, month, 1, tzinfo=timezone.utc))


def trailing_months(today: date, count: int = 6) -> list[MonthWindow]:
    """Return ``count`` month windows ending with the month of ``today``, oldest first.

    Each window is the half-open interval ``[start, end)`` of UTC timestamps.
    """
    if count <= 0:
        return []
    windows: list[MonthWindow] = []
    for offset in range(count - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        windows.append(
            MonthWindow(
                label=f"{year:04d}-{month:02d}",
                start=_month_start(year, month),
                end=_month_start(next_year, next_month),
            )
        )
    return windows
