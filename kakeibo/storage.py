"""Key-value persistence for the kakeibo core services."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

from .exceptions import PersistenceError


class JSONStorage:
    """One JSON document per key, stored as ``<key>.json`` with crash-safe writes."""

    suffix = ".json"

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise PersistenceError(f"Invalid storage key {key!r}")
        return self._base_path / f"{key}{self.suffix}"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def read_text(self, key: str) -> Optional[str]:
        """Return the raw stored text, or None when the key is absent."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

    def load(self, key: str) -> Any:
        """Return the decoded document for ``key``, or None when absent."""
        text = self.read_text(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {self.path_for(key)}") from exc

    def save(self, key: str, payload: Any) -> None:
        path = self.path_for(key)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            text = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to serialise data for {key}") from exc
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Unable to remove {path}") from exc

    def keys(self) -> List[str]:
        return sorted(
            path.name[: -len(self.suffix)]
            for path in self._base_path.glob(f"*{self.suffix}")
            if path.is_file()
        )

    @property
    def base_path(self) -> Path:
        return self._base_path
