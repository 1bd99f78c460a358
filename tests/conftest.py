from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List

import pytest

from kakeibo.models import Expense
from kakeibo.services import ExpenseService
from kakeibo.storage import JSONStorage
from kakeibo.store import NoticeBoard, RecordStore

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> JSONStorage:
    return JSONStorage(data_dir)


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def store(storage: JSONStorage, notices: NoticeBoard) -> RecordStore:
    return RecordStore(storage, notifier=notices)


@pytest.fixture
def clock() -> Callable[[], int]:
    ticks = iter(range(1_700_000_000_000, 1_800_000_000_000))
    return lambda: next(ticks)


@pytest.fixture
def service(store: RecordStore, clock: Callable[[], int]) -> ExpenseService:
    return ExpenseService(store, clock=clock)


def make_expense(
    id: str, date: str, category: str, amount: int, memo: str = ""
) -> Expense:
    return Expense(id=id, date=date, category=category, amount=amount, memo=memo, created_at=0)


@pytest.fixture
def sample() -> List[Expense]:
    return [
        make_expense("a", "2024-01-05", "食費", 1000, "Lunch at cafe"),
        make_expense("b", "2024-01-10", "交通費", 500, "train"),
        make_expense("c", "2023-12-28", "食費", 3000, "year-end party"),
        make_expense("d", "2024-01-10", "娯楽", 500, ""),
        make_expense("e", "2024-01-15", "日用品", 250, "Detergent"),
    ]


def form(**overrides: object) -> Dict[str, object]:
    base: Dict[str, object] = {"date": "2024-01-05", "category": "食費", "amount": "1000", "memo": ""}
    base.update(overrides)
    return base
