"""Core business logic package for the kakeibo expense tracker."""

from .exceptions import MalformedDocumentError, PersistenceError, RecordNotFoundError, ValidationError
from .forms import ExpenseDraft
from .models import Expense
from .queries import CategoryStat, ExpenseFilter, PeriodSummary, SortOrder
from .services import CategoryService, ExpenseService, SettingsService
from .storage import JSONStorage
from .store import NoticeBoard, RecordStore

__all__ = [
    "CategoryService",
    "CategoryStat",
    "Expense",
    "ExpenseDraft",
    "ExpenseFilter",
    "ExpenseService",
    "JSONStorage",
    "MalformedDocumentError",
    "NoticeBoard",
    "PeriodSummary",
    "PersistenceError",
    "RecordNotFoundError",
    "RecordStore",
    "SettingsService",
    "SortOrder",
    "ValidationError",
]
