import logging
import os
from collections.abc import Iterable, Sequence

from openpyxl import Workbook

from domain.stats import MonthlyStat
from domain.transactions import Transaction
from domain.wallets import Wallet

logger = logging.getLogger(__name__)

WALLET_HEADERS = ["id", "name", "icon", "initial_balance", "current_balance", "created_at"]
TRANSACTION_HEADERS = ["created_at", "id", "wallet", "type", "amount", "reason"]


def export_ledger_to_xlsx(
    filepath: str,
    wallets: Sequence[Wallet],
    transactions: Iterable[Transaction],
    monthly: Iterable[MonthlyStat] = (),
) -> None:
    """Export the ledger as a read-only XLSX report."""
    wb = Workbook()
    ws = wb.active
    if ws is not None:
        ws.title = "Wallets"
        ws.append(WALLET_HEADERS)
        total = 0
        for wallet in wallets:
            total += wallet.current_balance
            ws.append(
                [
                    wallet.id,
                    wallet.name,
                    wallet.icon,
                    wallet.initial_balance,
                    wallet.current_balance,
                    wallet.created_at,
                ]
            )
        ws.append(["TOTAL", "", "", "", total, ""])

    names = {wallet.id: wallet.name for wallet in wallets}
    tx_ws = wb.create_sheet("Transactions")
    tx_ws.append(TRANSACTION_HEADERS)
    count = 0
    for transaction in transactions:
        count += 1
        tx_ws.append(
            [
                transaction.created_at,
                transaction.id,
                names.get(transaction.wallet_id, transaction.wallet_id),
                transaction.type.value,
                transaction.signed_amount(),
                transaction.reason or "",
            ]
        )

    monthly_ws = wb.create_sheet("Monthly")
    monthly_ws.append(["month", "total_in", "total_out", "net"])
    for stat in monthly:
        monthly_ws.append([stat.month, stat.total_in, stat.total_out, stat.net])

    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    try:
        wb.save(filepath)
    finally:
        wb.close()
    logger.info("XLSX ledger report saved wallets=%s transactions=%s file=%s", len(wallets), count, filepath)
