from __future__ import annotations

import os
from dataclasses import dataclass

# Importing paths loads .env before we read any variable.
from job_copilot.config import paths  # noqa: F401


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{key} must be an integer, got {raw!r}") from exc


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{key} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    openai_model: str = "gpt-4.1-mini"
    # Seconds per model call; calls are never retried.
    openai_timeout: float = 30.0
    # How many ids to list from Gmail per sync.
    max_messages: int = 100
    # How many of the listed ids are actually fetched (most recent first).
    fetch_limit: int = 80
    # Scope of the last-resort tier that accepts any message.
    accept_any_limit: int = 10
    recent_query: str = "newer_than:90d"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_model=os.getenv("JOB_COPILOT_OPENAI_MODEL", cls.openai_model),
            openai_timeout=_env_float("JOB_COPILOT_OPENAI_TIMEOUT", cls.openai_timeout),
            max_messages=_env_int("JOB_COPILOT_MAX_MESSAGES", cls.max_messages),
            fetch_limit=_env_int("JOB_COPILOT_FETCH_LIMIT", cls.fetch_limit),
            accept_any_limit=_env_int("JOB_COPILOT_ACCEPT_ANY_LIMIT", cls.accept_any_limit),
            recent_query=os.getenv("JOB_COPILOT_RECENT_QUERY", cls.recent_query),
            log_level=os.getenv("JOB_COPILOT_LOG_LEVEL", cls.log_level).upper(),
        )
