"""Edit sessions for the expense form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, List, Optional

from .exceptions import RecordNotFoundError
from .models import Expense
from .services import ExpenseService
from .validators import ensure_valid_form, validate_expense_form


@dataclass(frozen=True)
class ExpenseDraft:
    """Form state for one add or edit; ``expense_id`` is None when adding."""

    date: str = ""
    category: str = ""
    amount: Any = ""
    memo: str = ""
    expense_id: Optional[str] = None

    @classmethod
    def for_new(cls, today: Optional[date] = None, category: str = "") -> "ExpenseDraft":
        today = today or date.today()
        return cls(date=today.isoformat(), category=category)

    @classmethod
    def for_existing(cls, expense: Expense) -> "ExpenseDraft":
        return cls(
            date=expense.date,
            category=expense.category,
            amount=expense.amount,
            memo=expense.memo or "",
            expense_id=expense.id,
        )

    @property
    def is_edit(self) -> bool:
        return self.expense_id is not None

    def with_fields(self, **fields: Any) -> "ExpenseDraft":
        return replace(self, **{k: v for k, v in fields.items() if v is not None})

    def form(self) -> Dict[str, Any]:
        return {
            "date": str(self.date or "").strip(),
            "category": str(self.category or "").strip(),
            "amount": self.amount,
            "memo": str(self.memo or "").strip(),
        }

    def errors(self) -> List[str]:
        return validate_expense_form(self.form())

    def submit(self, service: ExpenseService) -> Expense:
        """Validate, then add or update; returns the stored record."""
        form = self.form()
        ensure_valid_form(form)
        if self.expense_id is None:
            return service.add(form)
        if not service.update(self.expense_id, form):
            raise RecordNotFoundError(f"Expense {self.expense_id} not found")
        return service.require(self.expense_id)
