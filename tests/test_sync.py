from __future__ import annotations

import json
from typing import Any, Dict, List

import requests

from kakeibo.store import EXPENSES_KEY, SETTINGS_KEY
from kakeibo.sync import SheetSync, snapshot
from tests.conftest import form


class FakeResponse:
    def __init__(self, payload: Any = None, *, invalid: bool = False) -> None:
        self._payload = payload
        self._invalid = invalid

    def json(self) -> Any:
        if self._invalid:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def patch_post(monkeypatch, response=None, error=None) -> List[Dict[str, Any]]:
    recorded: List[Dict[str, Any]] = []

    def fake_post(url, **kwargs):
        recorded.append({"url": url, **kwargs})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    return recorded


def test_snapshot_flattens_every_key(store, service, storage):
    service.add(form())
    store.initialize()
    storage.path_for("notes").write_text("plain text", encoding="utf-8")

    data = snapshot(store)

    assert set(data) == {EXPENSES_KEY, SETTINGS_KEY, "expenseTracker_categories", "notes"}
    assert data[SETTINGS_KEY]["currency"] == "¥"
    assert data["notes"] == "plain text"


def test_push_posts_secret_and_data(store, service, notices, monkeypatch):
    service.add(form())
    recorded = patch_post(monkeypatch, FakeResponse({"ok": True}))

    result = SheetSync("https://example.test/exec", "s3cret", timeout=3, notifier=notices).push(store)

    assert result.ok
    assert notices.drain() == ["Synced to the spreadsheet."]
    assert len(recorded) == 1
    call = recorded[0]
    assert call["url"] == "https://example.test/exec"
    assert call["timeout"] == 3
    assert call["headers"]["Content-Type"].startswith("text/plain")
    body = json.loads(call["data"].decode("utf-8"))
    assert body["secret"] == "s3cret"
    assert body["data"][EXPENSES_KEY][0]["category"] == "食費"


def test_endpoint_error_is_reported(store, notices, monkeypatch):
    patch_post(monkeypatch, FakeResponse({"ok": False, "error": "bad secret"}))

    result = SheetSync("https://example.test/exec", "wrong", notifier=notices).push(store)

    assert not result.ok
    assert notices.drain() == ["Sync error: bad secret"]


def test_network_failure_is_reported_not_raised(store, notices, monkeypatch):
    recorded = patch_post(monkeypatch, error=requests.ConnectionError("offline"))

    result = SheetSync("https://example.test/exec", "s", notifier=notices).push(store)

    assert not result.ok
    assert len(recorded) == 1
    assert notices.drain() == ["Could not reach the sync endpoint."]


def test_unreadable_response_is_reported(store, notices, monkeypatch):
    patch_post(monkeypatch, FakeResponse(invalid=True))

    result = SheetSync("https://example.test/exec", "s", notifier=notices).push(store)

    assert not result.ok
    assert "unreadable" in result.message
