from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


def load_env_file() -> None:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("FEED_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)


@dataclass(frozen=True)
class Settings:
    log_level: str
    api_host: str
    api_port: int


def get_settings() -> Settings:
    load_env_file()

    log_level = (os.getenv("LOG_LEVEL", "INFO").strip() or "INFO").upper()
    api_host = os.getenv("API_HOST", "0.0.0.0")
    api_port = int(os.getenv("API_PORT", "8000"))

    return Settings(
        log_level=log_level,
        api_host=api_host,
        api_port=api_port,
    )
