"""Environment-driven settings for the budgetbook backend."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_SQLITE_PATH = os.path.join(os.path.dirname(__file__), "budgetbook.db")
ENVIRONMENTS = ("development", "test", "production")


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _split_origins(raw: str) -> Tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    database_url: str = f"sqlite:///{DEFAULT_SQLITE_PATH}"
    cors_origins: Tuple[str, ...] = field(default=("*",))
    rate_limit: int = 20
    rate_window_seconds: int = 60
    support_email: str = "support@budgetbook.app"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``os.environ`` (or the given mapping)."""
        env = os.environ if env is None else env
        environment = env.get("BUDGETBOOK_ENV", "development").strip().lower()
        if environment not in ENVIRONMENTS:
            raise ValueError(f"BUDGETBOOK_ENV must be one of {', '.join(ENVIRONMENTS)}, got {environment!r}")
        return cls(
            environment=environment,
            host=env.get("HOST", "127.0.0.1"),
            port=_read_int(env, "PORT", 8000),
            database_url=env.get("BUDGETBOOK_DATABASE_URL", f"sqlite:///{DEFAULT_SQLITE_PATH}"),
            cors_origins=_split_origins(env.get("BUDGETBOOK_CORS_ORIGINS", "*")) or ("*",),
            rate_limit=_read_int(env, "BUDGETBOOK_RATE_LIMIT", 20),
            rate_window_seconds=_read_int(env, "BUDGETBOOK_RATE_WINDOW_SECONDS", 60),
            support_email=env.get("BUDGETBOOK_SUPPORT_EMAIL", "support@budgetbook.app"),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def rate_limit_enabled(self) -> bool:
        # Local development and tests are never throttled.
        return self.is_production
