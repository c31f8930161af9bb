from __future__ import annotations

from collections.abc import Callable
from datetime import date

from domain.stats import MonthlyStat, OverallStat, trailing_months
from domain.transactions import Transaction
from domain.validation import utc_now
from infrastructure.repositories import LedgerRepository

MONTHLY_WINDOW = 6


def _utc_today() -> date:
    return utc_now().date()


class StatisticsService:
    """Read-only rollups computed on demand from the ledger."""

    def __init__(
        self,
        repository: LedgerRepository,
        *,
        today: Callable[[], date] = _utc_today,
        months: int = MONTHLY_WINDOW,
    ) -> None:
        self._repository = repository
        self._today = today
        self._months = months

    def monthly_stats(
        self, wallet_id: str | None = None, today: date | None = None
    ) -> list[MonthlyStat]:
        """Totals for the trailing months ending with the month of ``today``."""
        anchor = today if today is not None else self._today()
        stats: list[MonthlyStat] = []
        for window in trailing_months(anchor, self._months):
            totals = self._repository.transaction_totals(wallet_id, window.start, window.end)
            stats.append(
                MonthlyStat(
                    month=window.label,
                    total_in=totals.total_in,
                    total_out=totals.total_out,
                )
            )
        return stats

    def overall_stats(self, wallet_id: str | None = None) -> OverallStat:
        totals = self._repository.transaction_totals(wallet_id)
        return OverallStat(
            total_in=totals.total_in,
            total_out=totals.total_out,
            tx_count=self._repository.count_transactions(wallet_id),
        )

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return self._repository.recent_transactions(limit)
