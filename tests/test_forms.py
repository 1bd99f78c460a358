from __future__ import annotations

from datetime import date

import pytest

from kakeibo.exceptions import RecordNotFoundError, ValidationError
from kakeibo.forms import ExpenseDraft
from kakeibo.validators import coerce_amount, validate_expense_form
from tests.conftest import form


def test_valid_form_has_no_errors():
    assert validate_expense_form(form()) == []


def test_errors_are_accumulated():
    errors = validate_expense_form({"date": "", "category": "", "amount": "0", "memo": "x" * 201})
    assert errors == [
        "Please enter a date.",
        "Please choose a category.",
        "Please enter the amount as a positive number.",
        "Memo must be at most 200 characters.",
    ]


def test_bad_date_and_amount_text():
    errors = validate_expense_form(form(date="05/01/2024", amount="abc"))
    assert errors == [
        "Please enter the date as YYYY-MM-DD.",
        "Please enter the amount as a positive number.",
    ]


def test_memo_at_limit_is_fine():
    assert validate_expense_form(form(memo="x" * 200)) == []


@pytest.mark.parametrize(
    "raw, expected",
    [(12, 12), (12.9, 12), ("12.5", 12), (" 7円", 7), ("-3", -3), ("+4", 4)],
)
def test_coerce_amount(raw, expected):
    assert coerce_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", True, float("nan"), [1]])
def test_coerce_amount_rejects(raw):
    with pytest.raises(ValidationError):
        coerce_amount(raw)


def test_new_draft_defaults():
    draft = ExpenseDraft.for_new(date(2024, 1, 5), category="その他")
    assert draft.date == "2024-01-05"
    assert draft.category == "その他"
    assert not draft.is_edit


def test_submit_new_draft_adds(service):
    draft = ExpenseDraft.for_new(date(2024, 1, 5), "食費").with_fields(amount="800", memo="  bento  ")

    created = draft.submit(service)

    assert service.get(created.id).memo == "bento"
    assert created.amount == 800


def test_submit_invalid_draft_raises_with_all_messages(service):
    draft = ExpenseDraft()
    assert len(draft.errors()) == 3

    with pytest.raises(ValidationError) as info:
        draft.submit(service)
    assert len(info.value.errors) == 3
    assert service.all() == []


def test_submit_existing_draft_updates(service):
    created = service.add(form())

    draft = ExpenseDraft.for_existing(created)
    assert draft.is_edit
    updated = draft.with_fields(amount=1500, category=None).submit(service)

    assert updated.id == created.id
    assert updated.amount == 1500
    assert updated.category == "食費"
    assert len(service.all()) == 1


def test_submit_for_vanished_record(service):
    created = service.add(form())
    draft = ExpenseDraft.for_existing(created)
    service.delete(created.id)

    with pytest.raises(RecordNotFoundError):
        draft.submit(service)
