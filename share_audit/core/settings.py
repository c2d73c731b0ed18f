"""Runtime configuration read from environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

DEFAULT_API_BASE = "https://api.smartsheet.com/2.0"
DEFAULT_PROXY_URL = "https://corsproxy.io/?url="
DEFAULT_FALLBACK_PROXY_URL = "https://api.allorigins.win/raw?url="
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value != value or value < 0:  # NaN or negative
        return default
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip()


@dataclass(slots=True)
class Settings:
    api_base: str = DEFAULT_API_BASE
    proxy_url: str = DEFAULT_PROXY_URL
    fallback_proxy_url: str = DEFAULT_FALLBACK_PROXY_URL
    timeout: float = 30.0
    request_delay: float = 0.15
    page_size: int = 100
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment.

    Empty proxy variables are kept as empty strings: the client then talks to
    the upstream API directly for that route.
    """

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]

    return Settings(
        api_base=_str_env("SMARTSHEET_API_BASE", DEFAULT_API_BASE) or DEFAULT_API_BASE,
        proxy_url=_str_env("SMARTSHEET_PROXY_URL", DEFAULT_PROXY_URL),
        fallback_proxy_url=_str_env("SMARTSHEET_FALLBACK_PROXY_URL", DEFAULT_FALLBACK_PROXY_URL),
        timeout=_float_env("SMARTSHEET_TIMEOUT", 30.0),
        request_delay=_float_env("AUDIT_REQUEST_DELAY", 0.15),
        page_size=_int_env("AUDIT_PAGE_SIZE", 100),
        gemini_api_key=(os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or "").strip(),
        gemini_model=_str_env("GEMINI_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash",
        cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
        log_level=(_str_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler once; later calls only adjust the level."""

    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(resolved)
