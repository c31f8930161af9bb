from collections.abc import Iterable

from prettytable import PrettyTable

from .stats import MonthlyStat, OverallStat
from .transactions import Transaction
from .wallets import Wallet


def format_amount(value: int) -> str:
    if value < 0:
        return f"({abs(value):,})"
    return f"{value:,}"


def wallets_table(wallets: Iterable[Wallet]) -> str:
    table = PrettyTable()
    table.field_names = ["ID", "Name", "Icon", "Initial", "Current"]
    table.align["Name"] = "l"
    table.align["Initial"] = "r"
    table.align["Current"] = "r"
    total = 0
    for wallet in wallets:
        total += wallet.current_balance
        table.add_row(
            [
                wallet.id,
                wallet.name,
                wallet.icon,
                format_amount(wallet.initial_balance),
                format_amount(wallet.current_balance),
            ]
        )
    table.add_row(["", "TOTAL", "", "", format_amount(total)], divider=True)
    return str(table)


def transactions_table(transactions: Iterable[Transaction]) -> str:
    table = PrettyTable()
    table.field_names = ["Date", "ID", "Type", "Amount", "Reason"]
    table.align["Amount"] = "r"
    table.align["Reason"] = "l"
    for transaction in transactions:
        table.add_row(
            [
                transaction.created_at,
                transaction.id,
                transaction.type.value,
                format_amount(transaction.signed_amount()),
                transaction.reason or "",
            ]
        )
    return str(table)


def monthly_stats_table(stats: Iterable[MonthlyStat]) -> str:
    table = PrettyTable()
    table.field_names = ["Month", "In", "Out", "Net"]
    for column in ("In", "Out", "Net"):
        table.align[column] = "r"

    total_in = 0
    total_out = 0
    for stat in stats:
        total_in += stat.total_in
        total_out += stat.total_out
        table.add_row(
            [
                stat.month,
                format_amount(stat.total_in),
                format_amount(stat.total_out),
                format_amount(stat.net),
            ]
        )

    table.add_row(
        ["TOTAL", format_amount(total_in), format_amount(total_out), format_amount(total_in - total_out)],
        divider=True,
    )
    return str(table)


def overall_stats_table(stat: OverallStat) -> str:
    table = PrettyTable()
    table.field_names = ["Transactions", "In", "Out", "Net"]
    table.add_row(
        [
            stat.tx_count,
            format_amount(stat.total_in),
            format_amount(stat.total_out),
            format_amount(stat.net),
        ]
    )
    return str(table)
