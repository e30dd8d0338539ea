# backend/app/api/sync.py
from __future__ import annotations

import logging
from typing import Callable, Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from job_copilot.app.run import AIStages, sync_kwargs
from job_copilot.config.settings import Settings
from job_copilot.context import SyncContext
from job_copilot.pipeline.events import ProgressChannel, ProgressEvent
from job_copilot.pipeline.orchestrator import start_sync
from job_copilot.storage.applications import ApplicationStore
from backend.app.deps import get_ai_stages, get_context_loader, get_settings, get_store
from backend.app.status import sync_status_store

logger = logging.getLogger(__name__)

router = APIRouter()


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_messages: int = Field(100, alias="maxMessages", ge=1, le=500)


def _track(event: ProgressEvent) -> None:
    if event.type == "status" and event.message:
        sync_status_store.record_message(event.message)
    elif event.type == "done":
        result = event.result or {}
        sync_status_store.update(
            state="done",
            detail="Sync completed",
            connected=result.get("connected"),
            suggestion_count=len(result.get("suggestions") or []),
            debug=result.get("debug") or {},
        )
    elif event.type == "error":
        sync_status_store.update(state="error", detail=event.message)


def _event_stream(channel: ProgressChannel) -> Iterator[str]:
    try:
        for event in channel:
            _track(event)
            yield event.to_sse()
    finally:
        # Client gone (or stream finished): stop listening, calls in flight finish on their own.
        channel.detach()


def _sse_response(channel: ProgressChannel) -> StreamingResponse:
    return StreamingResponse(
        _event_stream(channel),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/gmail/sync")
def sync_endpoint(
    body: SyncRequest | None = None,
    load_context: Callable[[], SyncContext] = Depends(get_context_loader),
    settings: Settings = Depends(get_settings),
    ai: AIStages = Depends(get_ai_stages),
    store: ApplicationStore = Depends(get_store),
) -> StreamingResponse:
    max_messages = body.max_messages if body else settings.max_messages
    sync_status_store.reset(detail="Starting sync")

    try:
        ctx = load_context()
    except Exception as exc:
        logger.exception("Could not resolve the Gmail connection")
        channel = ProgressChannel()
        channel.error(f"Gmail sync failed: {exc}")
        return _sse_response(channel)

    logger.info("Sync requested (max_messages=%d, mailbox=%s)", max_messages, ctx.mailbox_identity)
    handle = start_sync(ctx, **sync_kwargs(settings, ai, store, max_messages))
    return _sse_response(handle.channel)


@router.get("/gmail/sync/status")
def sync_status() -> dict:
    return {"ok": True, "status": sync_status_store.snapshot()}
