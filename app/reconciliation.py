"""Domino-effect balance reconciliation.

Every mutation of a wallet's history is followed by a full recompute of its
``current_balance`` from ``initial_balance`` and the ledger. There is no
incremental delta: a stale value left by an interrupted write is corrected the
next time the wallet is touched.
"""

from __future__ import annotations

import logging

from domain.balance import BalanceDrift, forward_balance, solve_initial_balance
from domain.icons import normalize_icon
from storage.sqlite_storage import SQLiteStorage

logger = logging.getLogger(__name__)


class BalanceReconciler:
    def __init__(self, storage: SQLiteStorage) -> None:
        self._storage = storage

    def recalculate(self, wallet_id: str) -> int | None:
        """Recompute and store the wallet's current balance.

        Returns the new balance, or None if the wallet no longer exists.
        """
        with self._storage.transaction():
            initial_balance = self._storage.get_initial_balance(wallet_id)
            if initial_balance is None:
                logger.debug("Reconciliation skipped, wallet %s not found", wallet_id)
                return None
            totals = self._storage.sum_by_type(wallet_id)
            balance = forward_balance(initial_balance, totals)
            self._storage.set_current_balance(wallet_id, balance)
        return balance

    def recalculate_all(self) -> dict[str, int]:
        balances: dict[str, int] = {}
        with self._storage.transaction():
            for wallet_id in self._storage.wallet_ids():
                balance = self.recalculate(wallet_id)
                if balance is not None:
                    balances[wallet_id] = balance
        logger.info("Reconciled %s wallets", len(balances))
        return balances

    def update_wallet_direct(
        self,
        wallet_id: str,
        name: str,
        new_current_balance: int,
        icon: str | None = None,
    ) -> int | None:
        """Set the current balance directly and back-solve the initial balance.

        Returns the stored initial balance, or None if the wallet does not exist.
        """
        with self._storage.transaction():
            if self._storage.get_initial_balance(wallet_id) is None:
                return None
            totals = self._storage.sum_by_type(wallet_id)
            initial_balance = solve_initial_balance(new_current_balance, totals)
            self._storage.set_balances(
                wallet_id,
                name=name,
                initial_balance=initial_balance,
                current_balance=int(new_current_balance),
                icon=normalize_icon(icon),
            )
        logger.info(
            "Wallet %s balance set directly current=%s initial=%s",
            wallet_id,
            new_current_balance,
            initial_balance,
        )
        return initial_balance

    def find_drift(self) -> list[BalanceDrift]:
        drifts: list[BalanceDrift] = []
        for wallet in self._storage.get_wallets(newest_first=False):
            expected = forward_balance(
                wallet.initial_balance, self._storage.sum_by_type(wallet.id)
            )
            if expected != wallet.current_balance:
                drifts.append(
                    BalanceDrift(
                        wallet_id=wallet.id,
                        stored_balance=wallet.current_balance,
                        expected_balance=expected,
                    )
                )
        return drifts
