from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from kakeibo.exceptions import MalformedDocumentError
from kakeibo.services import CategoryService, SettingsService
from kakeibo.store import EXPENSES_KEY
from kakeibo.transfer import dumps, export_data, export_filename, import_data, write_export
from tests.conftest import form

EXPORTED_AT = datetime(2024, 1, 31, 9, 30, 15, 123000, tzinfo=timezone.utc)


def test_export_bundles_all_sections(store, service):
    created = service.add(form())

    document = export_data(store, EXPORTED_AT)

    assert set(document) == {"expenses", "categories", "settings", "exportDate"}
    assert document["expenses"] == [created.to_dict()]
    assert document["categories"][0] == "食費"
    assert document["settings"]["currency"] == "¥"
    assert document["exportDate"] == "2024-01-31T09:30:15.123Z"


def test_export_filename_embeds_the_date():
    assert export_filename(EXPORTED_AT) == "expense-tracker-2024-01-31.json"


def test_write_export_keeps_non_ascii(store, service, tmp_path):
    service.add(form(memo="ランチ"))

    path = write_export(store, tmp_path / "out", EXPORTED_AT)

    text = path.read_text(encoding="utf-8")
    assert path.name == "expense-tracker-2024-01-31.json"
    assert "ランチ" in text
    assert json.loads(text)["expenses"][0]["memo"] == "ランチ"


def test_round_trip_restores_state(store, service, storage):
    service.add(form(memo="a"))
    service.add(form(amount=200, category="交通費"))
    CategoryService(store).add("本")
    SettingsService(store).update({"currency": "$"})
    document = dumps(export_data(store, EXPORTED_AT))
    before = (store.read_document(EXPENSES_KEY), store.load_categories(), store.load_settings())

    storage.remove(EXPENSES_KEY)
    CategoryService(store).remove("本")
    SettingsService(store).update({"currency": "€"})

    assert import_data(store, document) is True
    assert (store.read_document(EXPENSES_KEY), store.load_categories(), store.load_settings()) == before


def test_sections_replace_wholesale_without_validation(store, service):
    service.add(form())

    import_data(store, {"expenses": [{"id": "x", "weird": True}]})

    assert store.read_document(EXPENSES_KEY) == [{"id": "x", "weird": True}]
    assert [expense.id for expense in service.all()] == ["x"]


def test_missing_and_null_sections_are_left_alone(store, service):
    created = service.add(form())
    CategoryService(store).add("本")

    import_data(store, json.dumps({"categories": None, "settings": {"currency": "$"}}))

    assert [expense.id for expense in service.all()] == [created.id]
    assert "本" in store.load_categories()
    assert store.load_settings() == {"currency": "$"}


def test_empty_list_section_still_replaces(store, service):
    service.add(form())

    import_data(store, '{"expenses": []}')

    assert service.all() == []


@pytest.mark.parametrize("document", ["{not json", "[1, 2]", "", b"\xff\xfe"])
def test_malformed_document_writes_nothing(store, service, storage, document):
    service.add(form())
    before = storage.read_text(EXPENSES_KEY)

    with pytest.raises(MalformedDocumentError):
        import_data(store, document)
    assert storage.read_text(EXPENSES_KEY) == before


def test_declined_confirmation_writes_nothing(store, service, storage):
    service.add(form())
    before = storage.read_text(EXPENSES_KEY)
    asked = []

    def decline():
        asked.append(True)
        return False

    assert import_data(store, '{"expenses": []}', decline) is False
    assert asked == [True]
    assert storage.read_text(EXPENSES_KEY) == before


def test_confirmation_is_not_asked_for_malformed_documents(store):
    def never():
        raise AssertionError("confirm should not be called")

    with pytest.raises(MalformedDocumentError):
        import_data(store, "nope", never)
