from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from job_copilot.ai.classifier import RelevanceClassifier
from job_copilot.ai.client import LanguageModel, OpenAIModel
from job_copilot.ai.summarizer import Summarizer
from job_copilot.config.paths import CREDENTIALS_PATH, TOKEN_PATH
from job_copilot.config.settings import Settings
from job_copilot.context import SyncContext, connect_context
from job_copilot.gmail.client import GmailClientConfig
from job_copilot.models import SyncResult
from job_copilot.pipeline.events import ProgressEvent
from job_copilot.pipeline.orchestrator import ConfirmedSource, run_sync, start_sync
from job_copilot.pipeline.policy import default_tiers


@dataclass(frozen=True)
class AIStages:
    classifier: RelevanceClassifier
    summarizer: Summarizer


def load_gmail_config() -> GmailClientConfig:
    if not CREDENTIALS_PATH.exists():
        raise RuntimeError(
            f"Missing Gmail credentials at {CREDENTIALS_PATH}. "
            "Did you configure JOB_COPILOT_SECRETS_DIR?"
        )
    return GmailClientConfig(
        credentials_path=CREDENTIALS_PATH,
        token_path=TOKEN_PATH,
        user_id="me",
    )


def load_context() -> SyncContext:
    """Context for the stored Gmail login; disconnected if there is none."""
    if not CREDENTIALS_PATH.exists() or not TOKEN_PATH.exists():
        return SyncContext.disconnected()
    return connect_context(load_gmail_config())


def build_ai_stages(settings: Settings, model: Optional[LanguageModel] = None) -> AIStages:
    model = model or OpenAIModel(settings.openai_model, timeout=settings.openai_timeout)
    return AIStages(classifier=RelevanceClassifier(model), summarizer=Summarizer(model))


def sync_kwargs(settings: Settings, ai: AIStages, confirmed: Optional[ConfirmedSource], max_messages: Optional[int]) -> dict:
    return {
        "classifier": ai.classifier,
        "summarizer": ai.summarizer,
        "confirmed": confirmed,
        "max_messages": max_messages or settings.max_messages,
        "fetch_limit": settings.fetch_limit,
        "tiers": default_tiers(settings.accept_any_limit),
        "query": settings.recent_query,
    }


def sync_once(
    ctx: SyncContext,
    *,
    settings: Settings,
    ai: AIStages,
    confirmed: Optional[ConfirmedSource] = None,
    max_messages: Optional[int] = None,
    progress_cb: Optional[Callable[[ProgressEvent], None]] = None,
) -> SyncResult:
    """
    Run one sync in the foreground and report every event to progress_cb.

    Returns the final SyncResult; the caller owns the suggestion cache.
    """
    kwargs = sync_kwargs(settings, ai, confirmed, max_messages)
    if progress_cb is None:
        return run_sync(ctx, **kwargs)

    handle = start_sync(ctx, **kwargs)
    for event in handle.channel:
        progress_cb(event)
    result = handle.wait()
    if result is None:
        raise RuntimeError("Sync finished without producing a result")
    return result
