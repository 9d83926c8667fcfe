from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError


@dataclass(frozen=True)
class Settings:
    source: str
    host: str = "127.0.0.1"
    port: int = 8050
    fetch_timeout: float = 20.0
    search_debounce_ms: int = 300
    log_level: str = "INFO"

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0


def load_env_file(code_dir: Path | None = None) -> None:
    """
    Load environment variables from a .env file if present.
    The working directory wins over the copy next to the code.
    """
    cwd_env = Path.cwd() / ".env"
    script_env = (code_dir or Path(__file__).resolve().parents[1]) / ".env"

    if cwd_env.exists():
        load_dotenv(dotenv_path=cwd_env, override=False)
    elif script_env.exists():
        load_dotenv(dotenv_path=script_env, override=False)


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default).strip()
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def load_settings(source: str | None = None) -> Settings:
    source = (source or os.getenv("DASHBOARD_SOURCE", "")).strip()
    if not source:
        raise ConfigError("DASHBOARD_SOURCE env var is required (URL or path of the transaction data)")

    debounce_ms = _env_number("DASHBOARD_SEARCH_DEBOUNCE_MS", "300", int)
    if debounce_ms < 0:
        raise ConfigError("DASHBOARD_SEARCH_DEBOUNCE_MS cannot be negative")

    return Settings(
        source=source,
        host=os.getenv("DASH_HOST", "127.0.0.1").strip(),
        port=_env_number("DASH_PORT", "8050", int),
        fetch_timeout=_env_number("DASHBOARD_FETCH_TIMEOUT", "20", float),
        search_debounce_ms=debounce_ms,
        log_level=os.getenv("DASHBOARD_LOG_LEVEL", "INFO").strip() or "INFO",
    )
