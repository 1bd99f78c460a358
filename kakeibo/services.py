"""Framework-agnostic business services for kakeibo."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .exceptions import RecordNotFoundError, ValidationError
from .models import DEFAULT_SETTINGS, SETTINGS_KEYS, Expense, generate_id, now_millis
from .queries import ExpenseFilter, SortOrder, filter_expenses, sort_expenses
from .store import RecordStore
from .validators import CATEGORY_MAX_LENGTH, coerce_amount, validate_required_str

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "category", "amount", "memo")


class ExpenseService:
    """Mutates expense records; every call works on a fresh snapshot of the store."""

    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Callable[[], int] = now_millis,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    # Public API -----------------------------------------------------------
    def add(self, payload: Mapping[str, Any]) -> Expense:
        """Append a new record and rewrite the list.

        The return value does not reflect the write; save failures reach the
        user through the store's notifier.
        """
        expenses = self._store.load_expenses()
        expense = Expense(
            id=self._id_factory(),
            date=payload.get("date") or "",
            category=payload.get("category") or "",
            amount=coerce_amount(payload.get("amount")),
            memo=payload.get("memo") or "",
            created_at=self._clock(),
        )
        expenses.append(expense)
        self._store.save_expenses(expenses)
        logger.info("Added expense %s", expense.id)
        return expense

    def update(self, expense_id: str, changes: Mapping[str, Any]) -> bool:
        expenses = self._store.load_expenses()
        index = _index_of(expenses, expense_id)
        if index is None:
            logger.info("Update skipped, expense %s not found", expense_id)
            return False

        existing = expenses[index]
        # Merge incoming fields over the stored record to support partial updates.
        merged: Dict[str, Any] = {
            name: getattr(existing, name) for name in EDITABLE_FIELDS
        }
        merged.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})
        expenses[index] = existing.with_changes(
            date=merged["date"] or "",
            category=merged["category"] or "",
            amount=coerce_amount(merged["amount"]),
            memo=merged["memo"] or "",
            updated_at=self._clock(),
        )
        self._store.save_expenses(expenses)
        logger.info("Updated expense %s", expense_id)
        return True

    def delete(self, expense_id: str) -> bool:
        """Remove every record with ``expense_id``; succeeds even when none matched."""
        expenses = self._store.load_expenses()
        remaining = [expense for expense in expenses if expense.id != expense_id]
        self._store.save_expenses(remaining)
        logger.info("Deleted %d record(s) with id %s", len(expenses) - len(remaining), expense_id)
        return True

    def get(self, expense_id: str) -> Optional[Expense]:
        expenses = self._store.load_expenses()
        index = _index_of(expenses, expense_id)
        return None if index is None else expenses[index]

    def require(self, expense_id: str) -> Expense:
        """Return an expense or raise if it does not exist."""
        expense = self.get(expense_id)
        if expense is None:
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        return expense

    def all(self) -> List[Expense]:
        return self._store.load_expenses()

    def list(
        self,
        filters: Optional[ExpenseFilter] = None,
        sort: Optional[SortOrder | str] = SortOrder.DATE_DESC,
    ) -> List[Expense]:
        records = self._store.load_expenses()
        if filters is not None:
            records = filter_expenses(records, filters)
        return sort_expenses(records, sort) if sort is not None else records


class CategoryService:
    """Manages the ordered category list."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def list(self) -> List[str]:
        return self._store.load_categories()

    def add(self, name: object) -> str:
        cleaned = validate_required_str(name, "category", CATEGORY_MAX_LENGTH)
        categories = self._store.load_categories()
        if cleaned in categories:
            raise ValidationError("Category name must be unique")
        categories.append(cleaned)
        self._store.save_categories(categories)
        return cleaned

    def remove(self, name: str) -> None:
        """Drop a category; expenses that reference it are left alone."""
        categories = self._store.load_categories()
        if name not in categories:
            raise RecordNotFoundError(f"Category {name} not found")
        self._store.save_categories([category for category in categories if category != name])


class SettingsService:
    """Reads and updates the flat settings mapping."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get(self) -> Dict[str, Any]:
        return {**DEFAULT_SETTINGS, **self._store.load_settings()}

    def update(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(changes) - SETTINGS_KEYS)
        if unknown:
            raise ValidationError(
                f"Unknown setting(s): {', '.join(unknown)}; expected one of: "
                f"{', '.join(sorted(SETTINGS_KEYS))}"
            )
        settings = {**self._store.load_settings(), **changes}
        self._store.save_settings(settings)
        return {**DEFAULT_SETTINGS, **settings}

    @property
    def currency(self) -> str:
        return str(self.get()["currency"])


def _index_of(expenses: List[Expense], expense_id: str) -> Optional[int]:
    for index, expense in enumerate(expenses):
        if expense.id == expense_id:
            return index
    return None
