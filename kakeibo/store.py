"""Record store: whole-collection load/save over a key-value storage."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import PersistenceError
from .models import DEFAULT_CATEGORIES, DEFAULT_SETTINGS, Expense
from .storage import JSONStorage

logger = logging.getLogger(__name__)

EXPENSES_KEY = "expenseTracker_expenses"
CATEGORIES_KEY = "expenseTracker_categories"
SETTINGS_KEY = "expenseTracker_settings"

Notifier = Callable[[str], None]


class FailurePolicy(str, Enum):
    SILENT = "silent"
    NOTIFY = "notify"


# Reads fall back to defaults and only log; writes also go to the notifier.
POLICIES: Dict[str, FailurePolicy] = {
    "load_expenses": FailurePolicy.SILENT,
    "load_categories": FailurePolicy.SILENT,
    "load_settings": FailurePolicy.SILENT,
    "read_document": FailurePolicy.SILENT,
    "save_expenses": FailurePolicy.NOTIFY,
    "save_categories": FailurePolicy.NOTIFY,
    "save_settings": FailurePolicy.NOTIFY,
    "write_document": FailurePolicy.NOTIFY,
}

MESSAGES: Dict[str, str] = {
    "load_expenses": "Failed to load expenses",
    "load_categories": "Failed to load categories",
    "load_settings": "Failed to load settings",
    "read_document": "Failed to read stored data",
    "save_expenses": "Failed to save expenses. Check the free space of the data directory.",
    "save_categories": "Failed to save categories. Check the free space of the data directory.",
    "save_settings": "Failed to save settings. Check the free space of the data directory.",
    "write_document": "Failed to save imported data. Check the free space of the data directory.",
}


def log_notifier(message: str) -> None:
    logger.warning("Notice: %s", message)


class NoticeBoard:
    """Notifier that keeps messages until a front end drains them."""

    def __init__(self) -> None:
        self._messages: List[str] = []

    def __call__(self, message: str) -> None:
        self._messages.append(message)

    def drain(self) -> List[str]:
        messages, self._messages = self._messages, []
        return messages

    @property
    def messages(self) -> List[str]:
        return list(self._messages)


class RecordStore:
    """Loads and saves whole collections; failures follow ``POLICIES``."""

    def __init__(self, storage: JSONStorage, notifier: Optional[Notifier] = None) -> None:
        self._storage = storage
        self._notify = notifier or log_notifier

    @property
    def storage(self) -> JSONStorage:
        return self._storage

    # Expenses -------------------------------------------------------------
    def load_expenses(self) -> List[Expense]:
        payload = self._read("load_expenses", EXPENSES_KEY)
        if payload is None:
            return []
        if not isinstance(payload, list):
            self._handle("load_expenses", TypeError(f"expected a list, got {type(payload).__name__}"))
            return []
        # Each item hydrates on its own; odd items are carried along as-is.
        return [Expense.from_dict(item) for item in payload]

    def save_expenses(self, expenses: List[Expense]) -> bool:
        return self._write("save_expenses", EXPENSES_KEY, [expense.to_dict() for expense in expenses])

    # Categories -----------------------------------------------------------
    def load_categories(self) -> List[str]:
        payload = self._read("load_categories", CATEGORIES_KEY)
        if payload is None:
            return list(DEFAULT_CATEGORIES)
        if not isinstance(payload, list):
            self._handle("load_categories", TypeError("expected a list of names"))
            return list(DEFAULT_CATEGORIES)
        return [str(name) for name in payload]

    def save_categories(self, categories: List[str]) -> bool:
        return self._write("save_categories", CATEGORIES_KEY, list(categories))

    # Settings -------------------------------------------------------------
    def load_settings(self) -> Dict[str, Any]:
        payload = self._read("load_settings", SETTINGS_KEY)
        if payload is None:
            return dict(DEFAULT_SETTINGS)
        if not isinstance(payload, dict):
            self._handle("load_settings", TypeError("expected a mapping"))
            return dict(DEFAULT_SETTINGS)
        return payload

    def save_settings(self, settings: Dict[str, Any]) -> bool:
        return self._write("save_settings", SETTINGS_KEY, dict(settings))

    def initialize(self) -> None:
        """Seed default categories and settings when their keys are absent."""
        if not self._storage.exists(CATEGORIES_KEY):
            self.save_categories(list(DEFAULT_CATEGORIES))
        if not self._storage.exists(SETTINGS_KEY):
            self.save_settings(dict(DEFAULT_SETTINGS))

    # Raw documents --------------------------------------------------------
    def read_document(self, key: str) -> Any:
        return self._read("read_document", key)

    def write_document(self, key: str, value: Any) -> bool:
        return self._write("write_document", key, value)

    def keys(self) -> List[str]:
        return self._storage.keys()

    # Internal helpers -----------------------------------------------------
    def _read(self, operation: str, key: str) -> Any:
        try:
            return self._storage.load(key)
        except PersistenceError as exc:
            self._handle(operation, exc)
            return None

    def _write(self, operation: str, key: str, payload: Any) -> bool:
        try:
            self._storage.save(key, payload)
        except PersistenceError as exc:
            self._handle(operation, exc)
            return False
        return True

    def _handle(self, operation: str, exc: Exception) -> None:
        message = MESSAGES[operation]
        logger.error("%s: %s", message, exc)
        if POLICIES[operation] is FailurePolicy.NOTIFY:
            self._notify(message)
