from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional, Protocol, Sequence

from job_copilot.context import SyncContext
from job_copilot.errors import MailboxUnavailable, MessageFetchFailed
from job_copilot.gmail.client import RECENT_QUERY, Mailbox
from job_copilot.models import RawMessage, SyncDebug, SyncResult
from job_copilot.parsing.parser import normalize_message
from job_copilot.pipeline.dedup import ConfirmedIndex, cross_reference, dedupe_by_conversation
from job_copilot.pipeline.events import ProgressChannel
from job_copilot.pipeline.policy import DEFAULT_TIERS, RelevanceTier, select_candidates
from job_copilot.pipeline.stages import Classifier, SummarizerLike, classify_candidates, summarize_candidates

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 100
# Messages are fetched one by one; keep the window small for rate limits.
FETCH_LIMIT = 80


class ConfirmedSource(Protocol):
    def confirmed_index(self) -> ConfirmedIndex: ...


def _confirmed(source: Optional[ConfirmedSource]) -> ConfirmedIndex:
    if source is None:
        return ConfirmedIndex()
    return source.confirmed_index()


def fetch_messages(
    mailbox: Mailbox,
    message_ids: Sequence[str],
    debug: Optional[SyncDebug] = None,
) -> List[RawMessage]:
    """Fetch and normalize messages in listing order, skipping failures."""
    messages: List[RawMessage] = []
    for message_id in message_ids:
        try:
            raw = normalize_message(mailbox.get_full_message(message_id))
        except Exception as exc:
            failure = MessageFetchFailed(message_id, exc)
            logger.warning("Skipping message: %s", failure)
            if debug is not None:
                debug.note_error(str(failure))
            continue
        if not raw.message_id:
            raw = replace(raw, message_id=message_id)
        messages.append(raw)
    return messages


def run_sync(
    ctx: SyncContext,
    *,
    classifier: Classifier,
    summarizer: SummarizerLike,
    confirmed: Optional[ConfirmedSource] = None,
    channel: Optional[ProgressChannel] = None,
    max_messages: int = DEFAULT_MAX_MESSAGES,
    fetch_limit: int = FETCH_LIMIT,
    tiers: Sequence[RelevanceTier] = DEFAULT_TIERS,
    query: str = RECENT_QUERY,
    debug: bool = True,
    today: date | None = None,
) -> SyncResult:
    """
    One sync: list, fetch, filter, classify, summarize, cross-reference.

    Always ends the channel with exactly one terminal event. Per-message
    and per-call failures are recorded in the debug record; only a failure
    of the sync as a whole produces an error event.
    """
    channel = channel or ProgressChannel()
    dbg = SyncDebug() if debug else None

    try:
        result = _run(
            ctx,
            classifier=classifier,
            summarizer=summarizer,
            confirmed=confirmed,
            channel=channel,
            max_messages=max_messages,
            fetch_limit=fetch_limit,
            tiers=tiers,
            query=query,
            dbg=dbg,
            today=today,
        )
    except MailboxUnavailable as exc:
        logger.warning("Gmail disconnected during sync: %s", exc)
        result = SyncResult(connected=False, debug=dbg)
    except Exception as exc:
        logger.exception("Gmail sync failed")
        message = f"Gmail sync failed: {exc}"
        if dbg is not None:
            dbg.error = f"{type(exc).__name__}: {exc}"
        channel.error(message)
        return SyncResult(
            connected=False,
            debug=dbg,
            error=message,
            mailbox_identity=ctx.mailbox_identity,
        )

    channel.done(result.to_dict())
    return result


def _run(
    ctx: SyncContext,
    *,
    classifier: Classifier,
    summarizer: SummarizerLike,
    confirmed: Optional[ConfirmedSource],
    channel: ProgressChannel,
    max_messages: int,
    fetch_limit: int,
    tiers: Sequence[RelevanceTier],
    query: str,
    dbg: Optional[SyncDebug],
    today: date | None,
) -> SyncResult:
    if ctx.mailbox is None:
        logger.info("Sync skipped: Gmail not connected")
        return SyncResult(connected=False, debug=dbg)

    identity = ctx.mailbox_identity

    # --- Step 1: list recent inbox messages ---
    channel.status("Listing inbox messages…")
    message_ids = ctx.mailbox.list_recent_message_ids(max_messages, query)
    if dbg is not None:
        dbg.listed = len(message_ids)

    if not message_ids:
        if dbg is not None:
            dbg.error = "Gmail returned 0 messages"
        return SyncResult(connected=True, debug=dbg, mailbox_identity=identity)

    # --- Step 2: fetch sequentially, then keyword tiers ---
    window = message_ids[:fetch_limit]
    channel.status(f"Reading {len(window)} emails…")
    messages = fetch_messages(ctx.mailbox, window, dbg)
    if dbg is not None:
        dbg.fetched = len(messages)

    tier_name, candidates = select_candidates(messages, tiers, today=today)
    if dbg is not None:
        dbg.tier = tier_name
        dbg.keyword_matched = len(candidates)

    # Already confirmed conversations never cost a model call.
    before = len(candidates)
    candidates = cross_reference(candidates, _confirmed(confirmed))
    if before != len(candidates):
        logger.info("Excluded %d already confirmed conversations", before - len(candidates))

    # --- Step 3: classification, fail open ---
    channel.status(f"Keyword-matched {len(candidates)} emails, classifying with AI…")
    relevant = classify_candidates(candidates, classifier, channel, dbg)
    if dbg is not None:
        dbg.ai_classified = len(relevant)

    # --- Step 4: summarization, typed fallback ---
    if relevant:
        channel.status(f"Summarizing {len(relevant)} job emails…")
    suggestions = summarize_candidates(relevant, summarizer, channel, dbg)
    if dbg is not None:
        dbg.summarized = sum(1 for s in suggestions if s.ai_processed)

    # --- Step 5: dedup + cross-reference against the current confirmed set ---
    suggestions = cross_reference(dedupe_by_conversation(suggestions), _confirmed(confirmed))

    logger.info(
        "Sync finished: %d listed, %d candidates, %d suggestions",
        len(message_ids),
        before,
        len(suggestions),
    )
    return SyncResult(connected=True, suggestions=suggestions, debug=dbg, mailbox_identity=identity)


@dataclass
class SyncHandle:
    channel: ProgressChannel
    thread: threading.Thread
    result: Optional[SyncResult] = None

    def wait(self, timeout: Optional[float] = None) -> Optional[SyncResult]:
        self.thread.join(timeout)
        return self.result


def start_sync(ctx: SyncContext, **kwargs) -> SyncHandle:
    """
    Run a sync on a background thread; events arrive on handle.channel.

    The thread is a daemon: a consumer that stops listening does not
    cancel calls already in flight, their results are dropped.
    """
    channel: ProgressChannel = kwargs.pop("channel", None) or ProgressChannel()

    def target() -> None:
        handle.result = run_sync(ctx, channel=channel, **kwargs)

    handle = SyncHandle(
        channel=channel,
        thread=threading.Thread(target=target, name="job-copilot-sync", daemon=True),
    )
    handle.thread.start()
    return handle
