"""Data models for the kakeibo domain."""

from __future__ import annotations

import copy
import secrets
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ValidationError
from .validators import coerce_amount, parse_iso_date

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_SETTINGS",
    "Expense",
    "SETTINGS_KEYS",
    "generate_id",
    "isoformat_utc_millis",
    "now_millis",
]

DEFAULT_CATEGORIES: List[str] = ["食費", "交通費", "娯楽", "日用品", "光熱費", "その他"]

DEFAULT_SETTINGS: Dict[str, str] = {
    "currency": "¥",
    "dateFormat": "YYYY-MM-DD",
    "defaultCategory": "その他",
}

SETTINGS_KEYS = frozenset(DEFAULT_SETTINGS)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

_KNOWN_FIELDS = ("id", "date", "category", "amount", "memo", "createdAt", "updatedAt")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def now_millis() -> int:
    return int(time.time() * 1000)


def generate_id() -> str:
    """Return a time-ordered prefix plus a random suffix, both in base 36."""
    return _to_base36(now_millis()) + _to_base36(secrets.randbits(52)).rjust(11, "0")


def isoformat_utc_millis(dt: datetime) -> str:
    """Return an ISO 8601 string with millisecond precision and a trailing Z."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Expense:
    id: str
    date: str
    category: str
    amount: int
    memo: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # Payload exactly as it was read; written back untouched until the record is edited.
    raw: Tuple[Any, ...] = field(default=(), compare=False, repr=False)

    def to_dict(self) -> Any:
        """Serialise the expense to the persisted camelCase layout."""
        if self.raw:
            return copy.deepcopy(self.raw[0])
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "id": self.id,
                "date": self.date,
                "category": self.category,
                "amount": self.amount,
                "memo": self.memo,
                "createdAt": self.created_at,
            }
        )
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> "Expense":
        """Hydrate an Expense from a stored payload of any shape.

        Stored records are not shape-checked, so fields that are missing or of
        the wrong type read as blanks while ``raw`` keeps the payload itself.
        """
        if not isinstance(data, dict):
            return cls(id="", date="", category="", amount=0, raw=(data,))
        record_id = data.get("id")
        return cls(
            id=str(record_id) if record_id is not None else "",
            date=_text(data.get("date")),
            category=_text(data.get("category")),
            amount=_stored_amount(data.get("amount")),
            memo=_text(data.get("memo")),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
            raw=(data,),
        )

    def with_changes(self, **changes: Any) -> "Expense":
        return replace(self, raw=(), **changes)

    @property
    def calendar_date(self) -> Optional[date]:
        return parse_iso_date(self.date)


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _stored_amount(value: object) -> int:
    try:
        return coerce_amount(value)
    except ValidationError:
        return 0
