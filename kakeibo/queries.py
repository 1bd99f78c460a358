"""Filter, sort and aggregate expense snapshots.

Everything here is a pure function of its arguments plus, for the period
statistics, a clock reading. Inputs are never mutated.
"""

from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Expense
from .validators import optional_amount

__all__ = [
    "CategoryStat",
    "ExpenseFilter",
    "PeriodSummary",
    "SortOrder",
    "average_daily",
    "category_breakdown",
    "category_sort_key",
    "filter_expenses",
    "filtered_total",
    "monthly_total",
    "sort_expenses",
    "summarize",
    "yearly_total",
]


class SortOrder(str, Enum):
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    AMOUNT_DESC = "amount-desc"
    AMOUNT_ASC = "amount-asc"
    CATEGORY_ASC = "category-asc"


@dataclass(frozen=True)
class ExpenseFilter:
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    category: Optional[str] = None
    amount_min: Optional[int] = None
    amount_max: Optional[int] = None
    search_memo: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ExpenseFilter":
        """Build a filter from form-style inputs where empty strings mean "not set"."""

        def text(name: str) -> Optional[str]:
            value = raw.get(name)
            if value is None:
                return None
            value = str(value)
            return value if value.strip() else None

        # Memo search matches whitespace too; only the empty string is unset.
        memo = raw.get("search_memo")
        memo = str(memo) if memo is not None and memo != "" else None

        return cls(
            date_from=text("date_from"),
            date_to=text("date_to"),
            category=text("category"),
            amount_min=optional_amount(raw.get("amount_min"), "amount_min"),
            amount_max=optional_amount(raw.get("amount_max"), "amount_max"),
            search_memo=memo,
        )

    def without_category(self) -> "ExpenseFilter":
        return ExpenseFilter(
            date_from=self.date_from,
            date_to=self.date_to,
            amount_min=self.amount_min,
            amount_max=self.amount_max,
            search_memo=self.search_memo,
        )

    @property
    def is_empty(self) -> bool:
        return self == ExpenseFilter()


@dataclass(frozen=True)
class CategoryStat:
    category: str
    amount: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "amount": self.amount, "percentage": self.percentage}


@dataclass(frozen=True)
class PeriodSummary:
    monthly_total: int
    yearly_total: int
    average_daily: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "monthlyTotal": self.monthly_total,
            "yearlyTotal": self.yearly_total,
            "averageDaily": self.average_daily,
        }


# Filtering -----------------------------------------------------------------
def filter_expenses(expenses: Iterable[Expense], filters: ExpenseFilter) -> List[Expense]:
    # Pre-compute the lowered needle once instead of per record.
    needle = filters.search_memo.lower() if filters.search_memo else None

    def matches(expense: Expense) -> bool:
        if filters.date_from and expense.date < filters.date_from:
            return False
        if filters.date_to and expense.date > filters.date_to:
            return False
        if filters.category and expense.category != filters.category:
            return False
        if filters.amount_min is not None and expense.amount < filters.amount_min:
            return False
        if filters.amount_max is not None and expense.amount > filters.amount_max:
            return False
        if needle and needle not in (expense.memo or "").lower():
            return False
        return True

    return [expense for expense in expenses if matches(expense)]


# Sorting -------------------------------------------------------------------
def _collation_bytes(char: str) -> bytes:
    try:
        encoded = char.encode("euc_jp")
    except UnicodeEncodeError:
        encoded = b""
    # JIS X 0208 only; supplementary (0x8F) and unmapped characters sort last.
    if not encoded or encoded.startswith(b"\x8f"):
        return b"\xff" + ord(char).to_bytes(4, "big")
    return encoded


def category_sort_key(name: str) -> bytes:
    """Collation key for Japanese category names.

    Width variants are unified, Latin letters are case-folded and katakana is
    folded onto hiragana so that kana spellings of a word sort together.
    Characters then compare in JIS X 0208 order: Latin before kana, kana in
    gojuon order, kanji by their JIS reading order.
    """
    normalized = unicodedata.normalize("NFKC", name).casefold()
    folded = (
        chr(ord(char) - 0x60) if "ァ" <= char <= "ヶ" else char
        for char in normalized
    )
    return b"".join(_collation_bytes(char) for char in folded)


def sort_expenses(expenses: Iterable[Expense], order: Optional[SortOrder | str]) -> List[Expense]:
    """Return a sorted copy; unknown orders return the records in their original order."""
    records = list(expenses)
    try:
        order = SortOrder(order) if order is not None else None
    except ValueError:
        return records

    if order is SortOrder.DATE_DESC:
        return sorted(records, key=lambda exp: exp.date, reverse=True)
    if order is SortOrder.DATE_ASC:
        return sorted(records, key=lambda exp: exp.date)
    if order is SortOrder.AMOUNT_DESC:
        return sorted(records, key=lambda exp: exp.amount, reverse=True)
    if order is SortOrder.AMOUNT_ASC:
        return sorted(records, key=lambda exp: exp.amount)
    if order is SortOrder.CATEGORY_ASC:
        return sorted(records, key=lambda exp: category_sort_key(exp.category))
    return records


# Aggregation ---------------------------------------------------------------
def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


def filtered_total(expenses: Iterable[Expense]) -> int:
    return sum(expense.amount for expense in expenses)


def monthly_total(expenses: Iterable[Expense], now: Optional[datetime] = None) -> int:
    current = _now(now)
    total = 0
    for expense in expenses:
        day = expense.calendar_date
        if day is not None and day.year == current.year and day.month == current.month:
            total += expense.amount
    return total


def yearly_total(expenses: Iterable[Expense], now: Optional[datetime] = None) -> int:
    current = _now(now)
    total = 0
    for expense in expenses:
        day = expense.calendar_date
        if day is not None and day.year == current.year:
            total += expense.amount
    return total


def average_daily(expenses: Iterable[Expense], now: Optional[datetime] = None) -> int:
    records = list(expenses)
    if not records:
        return 0
    current = _now(now)
    first_of_month = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    elapsed = (current - first_of_month).total_seconds() / 86400
    days_passed = math.ceil(elapsed)
    if days_passed <= 0:
        return 0
    return _round_half_up(Decimal(monthly_total(records, current)) / Decimal(days_passed))


def category_breakdown(expenses: Iterable[Expense]) -> List[CategoryStat]:
    sums: Dict[str, int] = {}
    grand_total = 0
    for expense in expenses:
        sums[expense.category] = sums.get(expense.category, 0) + expense.amount
        grand_total += expense.amount

    stats = [
        CategoryStat(
            category=category,
            amount=amount,
            percentage=(
                _round_half_up(Decimal(amount) * 100 / Decimal(grand_total))
                if grand_total > 0
                else 0
            ),
        )
        for category, amount in sums.items()
    ]
    return sorted(stats, key=lambda stat: stat.amount, reverse=True)


def summarize(expenses: Iterable[Expense], now: Optional[datetime] = None) -> PeriodSummary:
    records = list(expenses)
    current = _now(now)
    return PeriodSummary(
        monthly_total=monthly_total(records, current),
        yearly_total=yearly_total(records, current),
        average_daily=average_daily(records, current),
    )
