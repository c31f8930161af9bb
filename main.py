from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from collections.abc import Callable

from app.use_cases import (
    CreateTransaction,
    CreateWallet,
    DeleteTransaction,
    DeleteWallet,
    GetTransactions,
    GetWallets,
    SetWalletBalance,
    UpdateTransaction,
    UpdateWallet,
)
from backup import create_backup
from bootstrap import LedgerContext, bootstrap_ledger
from config import EXPORT_DIR, IMAGE_DIR, RECENT_LIMIT, SQLITE_PATH
from domain.errors import BackupRestoreError, BackupValidationError, ImportCancelled
from domain.icons import WALLET_ICON_KEYS
from domain.reports import (
    monthly_stats_table,
    overall_stats_table,
    transactions_table,
    wallets_table,
)
from utils.excel_utils import export_ledger_to_xlsx

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 3


class PromptPicker:
    """Document picker for the terminal: a given path, or ask for one."""

    def __init__(
        self, path: str | None = None, prompt: Callable[[str], str] | None = None
    ) -> None:
        self._path = path
        self._prompt = prompt

    def pick(self) -> str | None:
        if self._path:
            return self._path
        prompt = self._prompt or input
        try:
            answer = prompt("Backup file to import (empty to cancel): ")
        except (EOFError, KeyboardInterrupt):
            raise ImportCancelled() from None
        return answer.strip() or None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="LiquidMoney ledger: wallets, transactions, statistics and backups."
    )
    parser.add_argument("--db", default=SQLITE_PATH, help="Path to SQLite database")
    parser.add_argument("--images", default=IMAGE_DIR, help="Directory for wallet/transaction images")
    parser.add_argument("--exports", default=EXPORT_DIR, help="Directory for exported backups")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("wallets", help="List wallets")

    add_wallet = sub.add_parser("add-wallet", help="Create a wallet")
    add_wallet.add_argument("name")
    add_wallet.add_argument("initial_balance", type=int)
    add_wallet.add_argument("--icon", choices=sorted(WALLET_ICON_KEYS))
    add_wallet.add_argument("--image", help="Image file to attach")

    edit_wallet = sub.add_parser("edit-wallet", help="Edit name and initial balance")
    edit_wallet.add_argument("wallet_id")
    edit_wallet.add_argument("name")
    edit_wallet.add_argument("initial_balance", type=int)
    edit_wallet.add_argument("--icon", choices=sorted(WALLET_ICON_KEYS))
    edit_wallet.add_argument("--image", help="Replace the wallet image")

    set_balance = sub.add_parser("set-balance", help="Overwrite the current balance")
    set_balance.add_argument("wallet_id")
    set_balance.add_argument("current_balance", type=int)
    set_balance.add_argument("--name")
    set_balance.add_argument("--icon", choices=sorted(WALLET_ICON_KEYS))

    delete_wallet = sub.add_parser("delete-wallet", help="Delete a wallet and its transactions")
    delete_wallet.add_argument("wallet_id")

    list_tx = sub.add_parser("transactions", help="List transactions of a wallet")
    list_tx.add_argument("wallet_id")
    list_tx.add_argument("--type", choices=["IN", "OUT"])

    for name, help_text in (("add-tx", "Record a transaction"), ("edit-tx", "Edit a transaction")):
        command = sub.add_parser(name, help=help_text)
        if name == "edit-tx":
            command.add_argument("transaction_id")
        command.add_argument("wallet_id")
        command.add_argument("type", choices=["IN", "OUT"])
        command.add_argument("amount", type=int)
        command.add_argument("--reason")
        command.add_argument("--image", help="Image file to attach")

    delete_tx = sub.add_parser("delete-tx", help="Delete a transaction")
    delete_tx.add_argument("transaction_id")

    stats = sub.add_parser("stats", help="Monthly and overall statistics")
    stats.add_argument("--wallet")

    recent = sub.add_parser("recent", help="Most recent transactions")
    recent.add_argument("--limit", type=int, default=RECENT_LIMIT)

    export = sub.add_parser("export", help="Export a full JSON backup")
    export.add_argument("--dir", help="Target directory (default: --exports)")

    import_cmd = sub.add_parser("import", help="Restore a JSON backup, replacing all data")
    import_cmd.add_argument("path", nargs="?", help="Backup file (prompted when omitted)")
    import_cmd.add_argument(
        "--no-snapshot", action="store_true", help="Skip the database snapshot before import"
    )

    report = sub.add_parser("report-xlsx", help="Write an XLSX ledger report")
    report.add_argument("path")

    sub.add_parser("check", help="Report wallets whose balance disagrees with the ledger")
    return parser.parse_args(argv)


def _attach_image(context: LedgerContext, path: str | None, prefix: str) -> str | None:
    if not path:
        return None
    return context.images.save_image_to_local(path, prefix)


def _cmd_wallets(context: LedgerContext, args: argparse.Namespace) -> int:
    print(wallets_table(GetWallets(context.repository).execute()))
    return EXIT_OK


def _cmd_add_wallet(context: LedgerContext, args: argparse.Namespace) -> int:
    wallet = CreateWallet(context.repository).execute(
        name=args.name,
        initial_balance=args.initial_balance,
        image_uri=_attach_image(context, args.image, "wallet"),
        icon=args.icon,
    )
    print(f"[ok] Wallet created: {wallet.id}")
    return EXIT_OK


def _cmd_edit_wallet(context: LedgerContext, args: argparse.Namespace) -> int:
    current = context.repository.get_wallet_by_id(args.wallet_id)
    image_uri = _attach_image(context, args.image, "wallet")
    if image_uri is None and current is not None:
        image_uri = current.image_uri
    wallet = UpdateWallet(context.repository, context.images).execute(
        wallet_id=args.wallet_id,
        name=args.name,
        initial_balance=args.initial_balance,
        image_uri=image_uri,
        icon=args.icon or (current.icon if current else None),
    )
    print(f"[ok] Wallet updated: current balance {wallet.current_balance}")
    return EXIT_OK


def _cmd_set_balance(context: LedgerContext, args: argparse.Namespace) -> int:
    current = context.repository.get_wallet_by_id(args.wallet_id)
    if current is None:
        print(f"[error] Wallet not found: {args.wallet_id}")
        return EXIT_ERROR
    wallet = SetWalletBalance(context.repository).execute(
        wallet_id=args.wallet_id,
        name=args.name or current.name,
        current_balance=args.current_balance,
        icon=args.icon or current.icon,
    )
    print(f"[ok] Balance set, initial balance is now {wallet.initial_balance}")
    return EXIT_OK


def _cmd_delete_wallet(context: LedgerContext, args: argparse.Namespace) -> int:
    if not DeleteWallet(context.repository, context.images).execute(args.wallet_id):
        print(f"[warn] Wallet not found: {args.wallet_id}")
        return EXIT_ERROR
    print("[ok] Wallet deleted")
    return EXIT_OK


def _cmd_transactions(context: LedgerContext, args: argparse.Namespace) -> int:
    print(transactions_table(GetTransactions(context.repository).execute(args.wallet_id, args.type)))
    return EXIT_OK


def _cmd_add_tx(context: LedgerContext, args: argparse.Namespace) -> int:
    transaction = CreateTransaction(context.repository).execute(
        wallet_id=args.wallet_id,
        type=args.type,
        amount=args.amount,
        reason=args.reason,
        image_uri=_attach_image(context, args.image, "txn"),
    )
    print(f"[ok] Transaction created: {transaction.id}")
    return EXIT_OK


def _cmd_edit_tx(context: LedgerContext, args: argparse.Namespace) -> int:
    current = context.repository.get_transaction_by_id(args.transaction_id)
    image_uri = _attach_image(context, args.image, "txn")
    if image_uri is None and current is not None:
        image_uri = current.image_uri
    UpdateTransaction(context.repository, context.images).execute(
        transaction_id=args.transaction_id,
        wallet_id=args.wallet_id,
        type=args.type,
        amount=args.amount,
        reason=args.reason,
        image_uri=image_uri,
    )
    print("[ok] Transaction updated")
    return EXIT_OK


def _cmd_delete_tx(context: LedgerContext, args: argparse.Namespace) -> int:
    if not DeleteTransaction(context.repository, context.images).execute(args.transaction_id):
        print(f"[warn] Transaction not found: {args.transaction_id}")
        return EXIT_ERROR
    print("[ok] Transaction deleted")
    return EXIT_OK


def _cmd_stats(context: LedgerContext, args: argparse.Namespace) -> int:
    print(monthly_stats_table(context.statistics.monthly_stats(args.wallet)))
    print(overall_stats_table(context.statistics.overall_stats(args.wallet)))
    return EXIT_OK


def _cmd_recent(context: LedgerContext, args: argparse.Namespace) -> int:
    print(transactions_table(context.statistics.recent_transactions(args.limit)))
    return EXIT_OK


def _cmd_export(context: LedgerContext, args: argparse.Namespace) -> int:
    path = context.backups.export_backup(args.dir)
    print(f"[ok] Backup exported: {path}")
    return EXIT_OK


def _cmd_import(context: LedgerContext, args: argparse.Namespace) -> int:
    picker = PromptPicker(args.path)
    try:
        path = picker.pick()
    except ImportCancelled:
        path = None
    if not path:
        print("[cancel] Import cancelled, nothing changed")
        return EXIT_CANCELLED
    if not args.no_snapshot:
        create_backup(args.db)
    try:
        context.backups.import_backup(PromptPicker(path))
    except BackupValidationError as exc:
        print(f"[error] Backup rejected, nothing changed: {exc}")
        return EXIT_ERROR
    except BackupRestoreError as exc:
        print(f"[error] Restore failed mid-flight, check your data: {exc}")
        return EXIT_ERROR
    print("[ok] Backup imported")
    return EXIT_OK


def _cmd_report_xlsx(context: LedgerContext, args: argparse.Namespace) -> int:
    wallets, transactions = context.repository.export_snapshot()
    export_ledger_to_xlsx(args.path, wallets, transactions, context.statistics.monthly_stats())
    print(f"[ok] XLSX report saved: {args.path}")
    return EXIT_OK


def _cmd_check(context: LedgerContext, args: argparse.Namespace) -> int:
    drifts = context.repository.find_balance_drift()
    if not drifts:
        print("[ok] All wallet balances match their ledgers")
        return EXIT_OK
    for drift in drifts:
        print(
            f"[warn] {drift.wallet_id}: stored={drift.stored_balance} "
            f"expected={drift.expected_balance}"
        )
    return EXIT_ERROR


COMMANDS: dict[str, Callable[[LedgerContext, argparse.Namespace], int]] = {
    "wallets": _cmd_wallets,
    "add-wallet": _cmd_add_wallet,
    "edit-wallet": _cmd_edit_wallet,
    "set-balance": _cmd_set_balance,
    "delete-wallet": _cmd_delete_wallet,
    "transactions": _cmd_transactions,
    "add-tx": _cmd_add_tx,
    "edit-tx": _cmd_edit_tx,
    "delete-tx": _cmd_delete_tx,
    "stats": _cmd_stats,
    "recent": _cmd_recent,
    "export": _cmd_export,
    "import": _cmd_import,
    "report-xlsx": _cmd_report_xlsx,
    "check": _cmd_check,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    context = bootstrap_ledger(
        args.db, args.images, args.exports, heal=args.command != "check"
    )
    try:
        return COMMANDS[args.command](context, args)
    except ValueError as exc:
        print(f"[error] {exc}")
        return EXIT_ERROR
    except sqlite3.Error as exc:
        logging.getLogger(__name__).exception("Storage failure")
        print(f"[error] Storage failure: {exc}")
        return EXIT_ERROR
    finally:
        context.close()


if __name__ == "__main__":
    sys.exit(main())
