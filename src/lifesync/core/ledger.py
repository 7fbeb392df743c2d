"""Pure finance summaries over the transaction ledger."""

from dataclasses import dataclass
from datetime import date

from .models import Transaction, TransactionType


@dataclass
class LedgerSummary:
    """Totals across a set of transactions."""

    income: float = 0.0
    expense: float = 0.0

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass
class DailyTotal:
    date: date
    income: float = 0.0
    expense: float = 0.0


def summarize(transactions: list[Transaction]) -> LedgerSummary:
    summary = LedgerSummary()
    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            summary.income += tx.value
        else:
            summary.expense += tx.value
    return summary


def daily_totals(transactions: list[Transaction]) -> list[DailyTotal]:
    """
    Income and expense per calendar day, oldest day first.

    Pure function - no I/O.
    """
    totals: dict[date, DailyTotal] = {}
    for tx in sorted(transactions, key=lambda t: t.date):
        entry = totals.setdefault(tx.date, DailyTotal(tx.date))
        if tx.type == TransactionType.INCOME:
            entry.income += tx.value
        else:
            entry.expense += tx.value
    return list(totals.values())


def by_category(transactions: list[Transaction]) -> dict[str, float]:
    """Net signed amount per category."""
    result: dict[str, float] = {}
    for tx in transactions:
        result[tx.category] = result.get(tx.category, 0.0) + tx.signed_value
    return result


def recent(transactions: list[Transaction], limit: int | None = None) -> list[Transaction]:
    """Newest entries first."""
    ordered = sorted(transactions, key=lambda t: t.created_at, reverse=True)
    return ordered[:limit] if limit is not None else ordered
