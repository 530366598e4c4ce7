import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

MERGE_MODES = ("all", "legacy")


def _get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None or val.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return val.strip()


def _get_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}")


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def parse_origins(raw: str) -> list[str]:
    raw = (raw or "").strip()
    if not raw:
        return ["*"]
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///./epic_quiz.db"
    sql_echo: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    default_question_count: int = 10
    # smallest filtered pool accepted, capped at the requested count; smaller pools fail with 422
    min_viable_sample: int = 5
    # "all" merges every category bucket on update, "legacy" only characters and events
    progress_merge_mode: str = "all"

    @property
    def merge_all_categories(self) -> bool:
        return self.progress_merge_mode == "all"


def load_settings() -> Settings:
    mode = _get_env("PROGRESS_MERGE_MODE", "all").lower()
    if mode not in MERGE_MODES:
        raise RuntimeError(f"PROGRESS_MERGE_MODE must be one of {', '.join(MERGE_MODES)}, got {mode!r}")

    return Settings(
        database_url=_get_env("DATABASE_URL", "sqlite:///./epic_quiz.db"),
        sql_echo=_get_bool("SQL_ECHO"),
        cors_origins=parse_origins(os.getenv("CORS_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").upper(),
        default_question_count=_get_int("DEFAULT_QUESTION_COUNT", 10),
        min_viable_sample=_get_int("MIN_VIABLE_SAMPLE", 5),
        progress_merge_mode=mode,
    )
