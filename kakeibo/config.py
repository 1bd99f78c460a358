"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Config:
    data_dir: Path = Path("data")
    env: str = "prod"
    allowed_origins: List[str] = field(default_factory=list)
    sync_url: Optional[str] = None
    sync_secret: str = ""
    sync_timeout: float = 10.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Config":
        timeout = os.getenv("KAKEIBO_SYNC_TIMEOUT")
        try:
            sync_timeout = float(timeout) if timeout else 10.0
        except ValueError:
            sync_timeout = 10.0
        return cls(
            data_dir=Path(os.getenv("KAKEIBO_DATA_DIR", "data")),
            env=os.getenv("KAKEIBO_ENV", "prod").lower(),
            allowed_origins=_split_origins(os.getenv("KAKEIBO_ALLOWED_ORIGINS")),
            sync_url=os.getenv("KAKEIBO_SYNC_URL") or None,
            sync_secret=os.getenv("KAKEIBO_SYNC_SECRET", ""),
            sync_timeout=sync_timeout,
            log_level=os.getenv("KAKEIBO_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @property
    def sync_enabled(self) -> bool:
        return bool(self.sync_url)
