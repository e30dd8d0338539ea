from __future__ import annotations

from functools import lru_cache
from typing import Callable

from job_copilot.app.run import AIStages, build_ai_stages, load_context
from job_copilot.config.paths import APPLICATIONS_PATH
from job_copilot.config.settings import Settings
from job_copilot.context import SyncContext
from job_copilot.storage.applications import ApplicationStore


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache
def get_store() -> ApplicationStore:
    return ApplicationStore(APPLICATIONS_PATH)


def get_context() -> SyncContext:
    # Resolved per request: connecting or disconnecting Gmail takes effect at once.
    return load_context()


def get_context_loader() -> Callable[[], SyncContext]:
    """For endpoints that must report a failed Gmail connect themselves."""
    return load_context


_ai_stages: AIStages | None = None


def get_ai_stages() -> AIStages:
    global _ai_stages
    if _ai_stages is None:
        _ai_stages = build_ai_stages(get_settings())
    return _ai_stages
