# config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_temperature: float = 0.7
    gemini_max_tokens: int = 500
    gemini_timeout: float = 15.0
    gemini_fallback_enabled: bool = True
    analytics_backend: str = "memory"
    analytics_db_path: str = "chat_history.db"
    analytics_url: Optional[str] = None
    analytics_timeout: float = 2.0
    local_timezone: str = "Asia/Jakarta"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_temperature=_env_float("GEMINI_TEMPERATURE", 0.7),
            gemini_max_tokens=_env_int("GEMINI_MAX_TOKENS", 500),
            gemini_timeout=_env_float("GEMINI_TIMEOUT", 15.0),
            gemini_fallback_enabled=os.getenv("GEMINI_FALLBACK_ENABLED", "true").lower() != "false",
            analytics_backend=os.getenv("ANALYTICS_BACKEND", "memory").lower(),
            analytics_db_path=os.getenv("ANALYTICS_DB_PATH", "chat_history.db"),
            analytics_url=os.getenv("ANALYTICS_URL") or None,
            analytics_timeout=_env_float("ANALYTICS_TIMEOUT", 2.0),
            local_timezone=os.getenv("LOCAL_TIMEZONE", "Asia/Jakarta"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def get_settings() -> Settings:
    """Read settings from the environment, after loading a local .env file"""
    load_dotenv()
    return Settings.from_env()
