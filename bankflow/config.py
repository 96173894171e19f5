from __future__ import annotations

import os
from dataclasses import dataclass, field

try:
    # Optional: load .env in non-production environments
    from dotenv import load_dotenv  # type: ignore
    load_dotenv()
except ImportError:
    pass


DEFAULT_BASE_URL = "https://my-bank-backend.onrender.com"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "production"))

    bank_api_base_url: str = field(default_factory=lambda: os.getenv("BANK_API_BASE_URL", DEFAULT_BASE_URL))
    http_timeout: float = field(default_factory=lambda: _env_float("BANK_HTTP_TIMEOUT", 30.0))
    http_connect_timeout: float = field(default_factory=lambda: _env_float("BANK_HTTP_CONNECT_TIMEOUT", 10.0))

    # Only idempotent reads are retried; transfers and other POSTs never are
    read_max_attempts: int = field(default_factory=lambda: max(1, _env_int("BANK_READ_MAX_ATTEMPTS", 3)))
    retry_backoff_base: float = field(default_factory=lambda: _env_float("BANK_RETRY_BACKOFF_BASE", 0.5))

    healthcheck_skip_remote: bool = field(default_factory=lambda: _env_bool("HEALTHCHECK_SKIP_REMOTE", False))


settings = Settings()
