"""Whole-state JSON export and import."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .exceptions import MalformedDocumentError, PersistenceError
from .models import isoformat_utc_millis
from .store import CATEGORIES_KEY, EXPENSES_KEY, SETTINGS_KEY, RecordStore

logger = logging.getLogger(__name__)

SECTIONS = (
    ("expenses", EXPENSES_KEY),
    ("categories", CATEGORIES_KEY),
    ("settings", SETTINGS_KEY),
)

Document = Union[str, bytes, Mapping[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def export_data(store: RecordStore, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Bundle expenses, categories and settings as stored, plus an export timestamp."""
    expenses = store.read_document(EXPENSES_KEY)
    return {
        "expenses": expenses if expenses is not None else [],
        "categories": store.load_categories(),
        "settings": store.load_settings(),
        "exportDate": isoformat_utc_millis(now or _utcnow()),
    }


def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or _utcnow()).astimezone(timezone.utc).strftime("%Y-%m-%d")
    return f"expense-tracker-{stamp}.json"


def dumps(document: Mapping[str, Any]) -> str:
    return json.dumps(document, ensure_ascii=False, indent=2)


def write_export(store: RecordStore, directory: Path, now: Optional[datetime] = None) -> Path:
    now = now or _utcnow()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(now)
    try:
        path.write_text(dumps(export_data(store, now)), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Unable to write export to {path}") from exc
    logger.info("Exported data to %s", path)
    return path


def parse_document(document: Document) -> Dict[str, Any]:
    if isinstance(document, Mapping):
        return dict(document)
    try:
        parsed = json.loads(document)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise MalformedDocumentError(
            "The file could not be read. Please choose a valid JSON export."
        ) from exc
    if not isinstance(parsed, dict):
        raise MalformedDocumentError("An export document must be a JSON object.")
    return parsed


def import_data(
    store: RecordStore,
    document: Document,
    confirm: Callable[[], bool] = lambda: True,
) -> bool:
    """Replace every section present in ``document``.

    Nothing is written when the document fails to parse or when ``confirm``
    declines. Section contents are stored without shape checks.
    """
    parsed = parse_document(document)
    if not confirm():
        logger.info("Import cancelled by user")
        return False

    written = True
    for section, key in SECTIONS:
        value = parsed.get(section)
        if value is None:
            continue
        written = store.write_document(key, value) and written
    logger.info("Imported sections: %s", ", ".join(s for s, _ in SECTIONS if parsed.get(s) is not None))
    return written
