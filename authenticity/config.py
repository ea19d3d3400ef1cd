import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_PLAGIARISM_API_URL = "https://api.your-chosen-plagiarism-service.com/v1/check"


@dataclass(frozen=True)
class Settings:
    llm_provider: Optional[str] = None
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_GROQ_MODEL
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    plagiarism_api_key: Optional[str] = None
    plagiarism_api_url: str = DEFAULT_PLAGIARISM_API_URL
    upstream_timeout: float = 30.0
    max_retries: int = 3
    initial_retry_delay: float = 1.0
    max_plagiarism_sources: int = 5
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _number(name: str, default, cast):
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid value for %s (%r); using default %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative value for %s (%r); using default %s", name, raw, default)
        return default
    return value


def load_settings() -> Settings:
    """
    Reads settings from the environment. A .env file in the working directory
    is loaded first.
    """
    load_dotenv()

    provider = _env("LLM_PROVIDER")
    origins = _env("CORS_ORIGINS")
    return Settings(
        llm_provider=provider.lower() if provider else None,
        groq_api_key=_env("GROQ_API_KEY"),
        groq_model=_env("GROQ_MODEL") or DEFAULT_GROQ_MODEL,
        gemini_api_key=_env("GEMINI_API_KEY"),
        gemini_model=_env("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        plagiarism_api_key=_env("PLAGIARISM_API_KEY"),
        plagiarism_api_url=_env("PLAGIARISM_API_URL") or DEFAULT_PLAGIARISM_API_URL,
        upstream_timeout=_number("UPSTREAM_TIMEOUT_SECONDS", 30.0, float),
        max_retries=_number("MAX_RETRIES", 3, int),
        initial_retry_delay=_number("INITIAL_RETRY_DELAY", 1.0, float),
        max_plagiarism_sources=_number("MAX_PLAGIARISM_SOURCES", 5, int),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else ["*"],
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
