"""Best-effort backup of every stored key to a spreadsheet web-app endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .exceptions import PersistenceError
from .store import Notifier, RecordStore, log_notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    ok: bool
    message: str


def snapshot(store: RecordStore) -> Dict[str, Any]:
    """Every stored key mapped to its decoded value, or the raw text if it does not decode."""
    data: Dict[str, Any] = {}
    for key in store.keys():
        value = store.read_document(key)
        if value is None:
            try:
                value = store.storage.read_text(key)
            except PersistenceError as exc:
                logger.error("Skipping unreadable key %s: %s", key, exc)
                continue
        data[key] = value
    return data


class SheetSync:
    """Posts a flattened snapshot once; no retry and no conflict handling."""

    def __init__(
        self,
        url: str,
        secret: str,
        *,
        timeout: float = 10.0,
        notifier: Optional[Notifier] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._notify = notifier or log_notifier
        self._session = session

    def push(self, store: RecordStore) -> SyncResult:
        result = self._send(snapshot(store))
        self._notify(result.message)
        return result

    def _send(self, data: Dict[str, Any]) -> SyncResult:
        body = json.dumps({"secret": self.secret, "data": data}, ensure_ascii=False)
        post = self._session.post if self._session is not None else requests.post
        logger.info("Sending %d stored key(s) to %s", len(data), self.url)
        try:
            # The endpoint reads the raw body; it expects text/plain.
            response = post(
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Sync request failed: %s", exc)
            return SyncResult(False, "Could not reach the sync endpoint.")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Sync endpoint returned a non-JSON body: %s", exc)
            return SyncResult(False, "The sync endpoint returned an unreadable response.")

        if isinstance(payload, dict) and payload.get("ok"):
            return SyncResult(True, "Synced to the spreadsheet.")
        error = payload.get("error") if isinstance(payload, dict) else None
        logger.error("Sync endpoint rejected the upload: %s", error)
        return SyncResult(False, f"Sync error: {error or 'unknown error'}")
