"""Runtime configuration.

Settings are read from environment variables, with a `.env` file at the
repo root loaded first when present.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[1]

env_path = REPO_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)


# Task queues
TASK_QUEUE_DEFAULT = "farm-default"
TASK_QUEUE_LLM = "farm-llm"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Service settings.

    Attributes:
        db_path: SQLite database holding farm data
        openai_api_key: Key for the extraction model
        openai_model: Chat model used for extraction
        openai_base_url: Optional alternate API endpoint
        llm_timeout_seconds: Upper bound for one extraction call
        db_timeout_seconds: Upper bound for store reads and lock waits
        default_max_backdate_days: Backdating window when a farm sets none
        temporal_endpoint: Temporal frontend host:port
        temporal_namespace: Temporal namespace
        temporal_api_key: API key for Temporal Cloud
        temporal_cert_path: Client certificate for mTLS
        log_json: Emit JSON log lines instead of human-readable ones
    """
    db_path: Path = REPO_ROOT / "farm_activity.db"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_base_url: Optional[str] = None
    llm_timeout_seconds: float = 60.0
    db_timeout_seconds: float = 10.0
    default_max_backdate_days: int = 7
    temporal_endpoint: Optional[str] = None
    temporal_namespace: str = "default"
    temporal_api_key: Optional[str] = None
    temporal_cert_path: Optional[str] = None
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=Path(os.getenv("FARM_DB_PATH", str(REPO_ROOT / "farm_activity.db"))),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            openai_base_url=os.getenv("OPENAI_BASE_URL"),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 60.0),
            db_timeout_seconds=_env_float("DB_TIMEOUT_SECONDS", 10.0),
            default_max_backdate_days=int(_env_float("DEFAULT_MAX_BACKDATE_DAYS", 7)),
            temporal_endpoint=os.getenv("TEMPORAL_ENDPOINT"),
            temporal_namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
            temporal_api_key=os.getenv("TEMPORAL_API_KEY"),
            temporal_cert_path=os.getenv("TEMPORAL_CERT_PATH"),
            log_json=_env_bool("LOG_JSON", False),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
