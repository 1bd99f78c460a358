"""Display helpers for amounts, dates and one-line record summaries."""

from __future__ import annotations

from typing import Any, Mapping

from .models import DEFAULT_SETTINGS, Expense
from .queries import CategoryStat
from .validators import parse_iso_date

DEFAULT_SYMBOL = DEFAULT_SETTINGS["currency"]


def format_amount(amount: int, symbol: str = DEFAULT_SYMBOL) -> str:
    """Render ``amount`` with thousands separators after the currency glyph."""
    return f"{symbol}{amount:,}"


def format_date(value: str) -> str:
    """Reformat ``YYYY-MM-DD`` as ``YYYY/MM/DD``; unparseable input comes back as-is."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return value.strip() if isinstance(value, str) else str(value)
    return f"{parsed.year:04d}/{parsed.month:02d}/{parsed.day:02d}"


def format_expense_row(expense: Expense, symbol: str = DEFAULT_SYMBOL) -> str:
    return (
        f"[{expense.id}] {format_date(expense.date)}  {expense.category}  "
        f"{format_amount(expense.amount, symbol)}  {expense.memo or '-'}"
    )


def format_breakdown_row(stat: CategoryStat, symbol: str = DEFAULT_SYMBOL) -> str:
    return f"{stat.category}: {format_amount(stat.amount, symbol)} ({stat.percentage}%)"


def currency_symbol(settings: Mapping[str, Any]) -> str:
    symbol = settings.get("currency")
    return symbol if isinstance(symbol, str) else DEFAULT_SYMBOL
