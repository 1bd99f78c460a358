"""Validation helpers shared across kakeibo services."""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, List, Mapping, Optional

from .exceptions import ValidationError

MEMO_MAX_LENGTH = 200
CATEGORY_MAX_LENGTH = 50

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_amount(raw: object, field: str = "amount") -> int:
    """Convert raw input to an int the way integer form fields are parsed.

    Integers pass through, floats are truncated toward zero and strings
    contribute their leading signed digits (``"12.5"`` gives 12).
    """
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            raise ValidationError(f"{field} must be a numeric value")
        return int(raw)
    if isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if match:
            return int(match.group(1))
    raise ValidationError(f"{field} must be a numeric value")


def parse_iso_date(value: object) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string; None for anything else."""
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def optional_amount(raw: object, field: str) -> Optional[int]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return coerce_amount(raw, field)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_expense_form(form: Mapping[str, Any]) -> List[str]:
    """Collect every problem with a submitted expense form; empty means valid."""
    errors: List[str] = []

    raw_date = form.get("date")
    if not raw_date:
        errors.append("Please enter a date.")
    elif parse_iso_date(raw_date) is None:
        errors.append("Please enter the date as YYYY-MM-DD.")

    if not form.get("category"):
        errors.append("Please choose a category.")

    raw_amount = form.get("amount")
    try:
        amount = coerce_amount(raw_amount)
    except ValidationError:
        amount = None
    if amount is None or amount <= 0:
        errors.append("Please enter the amount as a positive number.")

    memo = form.get("memo")
    if memo and len(str(memo)) > MEMO_MAX_LENGTH:
        errors.append(f"Memo must be at most {MEMO_MAX_LENGTH} characters.")

    return errors


def ensure_valid_form(form: Mapping[str, Any]) -> None:
    errors = validate_expense_form(form)
    if errors:
        raise ValidationError("; ".join(errors), errors)
