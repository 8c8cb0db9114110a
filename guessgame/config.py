"""
Single place to read settings from the environment.
A local .env is loaded first (dev convenience; in prod the platform injects env vars).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    gemini_api_key: str
    gemini_model: str
    commentary_timeout: float
    commentary_language: str
    use_random_org: bool
    # timer: add tick_increment every tick_seconds while playing
    tick_seconds: float = 0.1
    tick_increment: float = 0.1


def load_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        # API_KEY is the older name the hosted frontend used
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "",
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
        commentary_timeout=float(os.getenv("COMMENTARY_TIMEOUT", "5.0")),
        commentary_language=os.getenv("COMMENTARY_LANGUAGE", "Korean"),
        use_random_org=_env_flag("USE_RANDOM_ORG", "1"),
    )


settings = load_settings()
