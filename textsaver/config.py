import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from textsaver.errors import ConfigurationError

DEFAULT_PORT = 3001
DEFAULT_DATABASE_PATH = "database.sqlite"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0

PACKAGE_STATIC_DIR = Path(__file__).resolve().parent / "static"


@dataclass(frozen=True)
class Config:
    openai_api_key: Optional[str]
    port: int = DEFAULT_PORT
    host: str = "127.0.0.1"
    database_path: Path = Path(DEFAULT_DATABASE_PATH)
    openai_model: str = DEFAULT_MODEL
    openai_max_tokens: int = DEFAULT_MAX_TOKENS
    openai_temperature: float = DEFAULT_TEMPERATURE
    openai_base_url: str = DEFAULT_BASE_URL
    openai_timeout: float = DEFAULT_TIMEOUT
    static_dir: Path = PACKAGE_STATIC_DIR
    log_level: str = "INFO"


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _env_path(name: str, default: Path, *, root: Path) -> Path:
    value = os.environ.get(name)
    if not value:
        return default
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path


def load_config(*, require_api_key: bool = True, dotenv: bool = True) -> Config:
    """
    Build a Config from the process environment.

    A `.env` file in the working directory is read first (existing
    variables win). With `require_api_key`, a missing OPENAI_API_KEY is a
    ConfigurationError so startup fails instead of serving a degraded app.
    """
    if dotenv:
        load_dotenv(override=False)

    root = Path.cwd()
    api_key = os.environ.get("OPENAI_API_KEY") or None
    if require_api_key and not api_key:
        raise ConfigurationError("Missing required env var: OPENAI_API_KEY")

    return Config(
        openai_api_key=api_key,
        port=_env_int("PORT", DEFAULT_PORT),
        host=_env_str("HOST", "127.0.0.1"),
        database_path=_env_path("DATABASE_PATH", root / DEFAULT_DATABASE_PATH, root=root),
        openai_model=_env_str("OPENAI_MODEL", DEFAULT_MODEL),
        openai_max_tokens=_env_int("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        openai_temperature=_env_float("OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE),
        openai_base_url=_env_str("OPENAI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        openai_timeout=_env_float("OPENAI_TIMEOUT", DEFAULT_TIMEOUT),
        static_dir=_env_path("STATIC_DIR", PACKAGE_STATIC_DIR, root=root),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
