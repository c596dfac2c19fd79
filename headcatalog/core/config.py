from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()  # Load .env file if present


def _get(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _get_bool(key: str, default: bool = False) -> bool:
    raw = _get(key, "1" if default else "0").strip().lower()
    return raw in {"1", "true", "yes", "on"}


def _get_list(key: str) -> Tuple[str, ...]:
    raw = _get(key, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _get_optional_float(key: str) -> Optional[float]:
    raw = _get(key, "0").strip()
    value = float(raw or "0")
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    APP_NAME: str = _get("APP_NAME", "HeadCatalog")
    APP_ENV: str = _get("APP_ENV", "dev")

    # Providers
    HEADS_PRIMARY_URL: str = _get("HEADS_PRIMARY_URL", "https://minecraft-heads.com/scripts/api.php")
    HEADS_FALLBACK_URL: str = _get("HEADS_FALLBACK_URL", "https://heads.pages.dev/archive")
    HEADS_FALLBACK_ENABLED: bool = _get_bool("HEADS_FALLBACK_ENABLED", True)
    HEADS_CATEGORIES: Tuple[str, ...] = _get_list("HEADS_CATEGORIES")

    # Refresh cycle
    HEADS_REFRESH_INTERVAL: int = int(_get("HEADS_REFRESH_INTERVAL", "3600"))
    HEADS_FETCH_TIMEOUT_MS: int = int(_get("HEADS_FETCH_TIMEOUT_MS", "5000"))
    HEADS_REFRESH_DEADLINE: Optional[float] = _get_optional_float("HEADS_REFRESH_DEADLINE")
    HEADS_AUTO_REFRESH: bool = _get_bool("HEADS_AUTO_REFRESH", True)
    HEADS_AUTO_REFRESH_CHECK: float = float(_get("HEADS_AUTO_REFRESH_CHECK", "60"))

    @property
    def user_agent(self) -> str:
        return f"{self.APP_NAME}-DatabaseUpdater"


settings = Settings()
