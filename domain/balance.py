"""Balance arithmetic shared by the reconciliation engine and its tests.

A wallet's current balance is never stored independently of its history:

    current_balance = initial_balance + sum(IN) - sum(OUT)

Forward reconciliation evaluates the right-hand side. Inverse reconciliation keeps
the history untouched and solves for the initial balance instead.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BalanceTotals:
    total_in: int = 0
    total_out: int = 0

    @property
    def net(self) -> int:
        return self.total_in - self.total_out


@dataclass(frozen=True)
class BalanceDrift:
    wallet_id: str
    stored_balance: int
    expected_balance: int

    @property
    def difference(self) -> int:
        return self.stored_balance - self.expected_balance


def forward_balance(initial_balance: int, totals: BalanceTotals) -> int:
    return int(initial_balance) + totals.total_in - totals.total_out


def solve_initial_balance(current_balance: int, totals: BalanceTotals) -> int:
    """Initial balance that makes ``current_balance`` consistent with ``totals``."""
    return int(current_balance) - totals.total_in + totals.total_out
