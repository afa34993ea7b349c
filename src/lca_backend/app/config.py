"""
Runtime configuration loaded from environment variables (or a `.env` file).

Only the report collaborators and the dashboard need configuration; the LCA
core takes its tables as arguments and reads nothing from the environment.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.1-8b-instant"


@dataclass(frozen=True)
class Settings:
    llm_api_key: Optional[str] = None
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_max_tokens: int = 1200
    llm_temperature: float = 0.0
    llm_timeout_seconds: float = 60.0
    backend_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s.", name, raw, default)
        return default


def get_settings(env_file: Optional[Path] = None) -> Settings:
    """Read settings from the environment, loading `.env` first if present."""
    env_path = env_file or _PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings(
        llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY"),
        llm_base_url=os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL).rstrip("/"),
        llm_model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
        llm_max_tokens=_env_number("LLM_MAX_TOKENS", 1200, int),
        llm_temperature=_env_number("LLM_TEMPERATURE", 0.0, float),
        llm_timeout_seconds=_env_number("LLM_TIMEOUT_SECONDS", 60.0, float),
        backend_url=os.getenv("BACKEND_URL", "http://localhost:8000").rstrip("/"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
