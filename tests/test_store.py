from __future__ import annotations

import json

import pytest

from kakeibo.exceptions import PersistenceError
from kakeibo.models import DEFAULT_CATEGORIES, DEFAULT_SETTINGS
from kakeibo.store import (
    CATEGORIES_KEY,
    EXPENSES_KEY,
    POLICIES,
    SETTINGS_KEY,
    FailurePolicy,
    RecordStore,
)
from tests.conftest import make_expense


def test_storage_writes_one_file_per_key(storage):
    storage.save("expenseTracker_categories", ["食費"])

    path = storage.base_path / "expenseTracker_categories.json"
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == ["食費"]
    assert storage.keys() == ["expenseTracker_categories"]
    assert not list(storage.base_path.glob("*.tmp"))


def test_storage_rejects_path_like_keys(storage):
    with pytest.raises(PersistenceError):
        storage.save("../escape", [])


def test_storage_raises_on_corrupted_json(storage):
    storage.path_for(EXPENSES_KEY).write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        storage.load(EXPENSES_KEY)


def test_absent_keys_fall_back_without_writing(store, storage):
    assert store.load_expenses() == []
    assert store.load_categories() == DEFAULT_CATEGORIES
    assert store.load_settings() == DEFAULT_SETTINGS
    assert storage.keys() == []


def test_initialize_seeds_only_missing_keys(store, storage):
    storage.save(CATEGORIES_KEY, ["custom"])

    store.initialize()

    assert store.load_categories() == ["custom"]
    assert store.load_settings() == DEFAULT_SETTINGS
    assert storage.exists(SETTINGS_KEY)


def test_expenses_round_trip(store):
    expense = make_expense("x1", "2024-02-01", "娯楽", 1200, "movie")

    assert store.save_expenses([expense]) is True
    assert store.load_expenses() == [expense]


def test_unknown_record_fields_survive_a_rewrite(store, storage):
    storage.save(
        EXPENSES_KEY,
        [{"id": "x1", "date": "2024-02-01", "category": "娯楽", "amount": 1200,
          "memo": "movie", "createdAt": 1, "source": "import"}],
    )

    store.save_expenses(store.load_expenses())

    assert storage.load(EXPENSES_KEY)[0]["source"] == "import"


def test_corrupted_read_is_logged_not_notified(store, storage, notices, caplog):
    storage.path_for(EXPENSES_KEY).write_text("[broken", encoding="utf-8")

    assert store.load_expenses() == []
    assert notices.messages == []
    assert "Failed to load expenses" in caplog.text


def test_wrong_shape_reads_as_empty(store, storage, notices):
    storage.save(EXPENSES_KEY, {"not": "a list"})
    storage.save(CATEGORIES_KEY, "nope")

    assert store.load_expenses() == []
    assert store.load_categories() == DEFAULT_CATEGORIES
    assert notices.messages == []


def test_write_failure_is_notified(store, storage, notices, monkeypatch):
    def fail(key, payload):
        raise PersistenceError("disk full")

    monkeypatch.setattr(storage, "save", fail)

    assert store.save_expenses([make_expense("x", "2024-01-01", "食費", 1)]) is False
    assert store.save_categories(["a"]) is False
    assert store.save_settings({}) is False
    assert len(notices.drain()) == 3
    assert notices.messages == []


def test_policy_table_covers_every_operation():
    reads = {name for name in POLICIES if name.startswith(("load_", "read_"))}
    writes = set(POLICIES) - reads

    assert all(POLICIES[name] is FailurePolicy.SILENT for name in reads)
    assert all(POLICIES[name] is FailurePolicy.NOTIFY for name in writes)


def test_default_notifier_logs(storage, monkeypatch, caplog):
    def fail(key, payload):
        raise PersistenceError("read-only")

    store = RecordStore(storage)
    monkeypatch.setattr(storage, "save", fail)

    assert store.save_categories([]) is False
    assert "Notice: Failed to save categories" in caplog.text
