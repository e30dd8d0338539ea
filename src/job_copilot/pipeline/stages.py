from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Protocol, Sequence, TypeVar

from job_copilot.ai.summarizer import AISummary
from job_copilot.models import Candidate, Suggestion, SyncDebug
from job_copilot.pipeline.events import ProgressChannel

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY_LIMIT = 100
FALLBACK_ACTION_ITEMS = ("Review email manually",)

T = TypeVar("T")
R = TypeVar("R")


class Classifier(Protocol):
    def classify(self, text: str) -> bool: ...


class SummarizerLike(Protocol):
    def summarize(self, text: str) -> AISummary: ...


def _run_batch(
    items: Sequence[T],
    call: Callable[[T], R],
    on_done: Callable[[int, T, "Future[R]"], None],
) -> None:
    """
    Run call(item) for every item at once and wait for all of them.

    on_done(index, item, future) runs on this thread, in completion order.
    """
    if not items:
        return
    # One worker per item: the batch is small and every call is I/O bound.
    with ThreadPoolExecutor(max_workers=len(items), thread_name_prefix="job-copilot-ai") as pool:
        futures: Dict["Future[R]", int] = {pool.submit(call, item): i for i, item in enumerate(items)}
        for future in as_completed(futures):
            index = futures[future]
            on_done(index, items[index], future)


def classify_candidates(
    candidates: Sequence[Candidate],
    classifier: Classifier,
    channel: Optional[ProgressChannel] = None,
    debug: Optional[SyncDebug] = None,
) -> List[Candidate]:
    """
    Keep the candidates the classifier calls job related.

    Fails open: a candidate whose classification call raises is kept.
    Output order follows input order.
    """
    keep: List[Optional[bool]] = [None] * len(candidates)
    total = len(candidates)
    completed = 0

    def on_done(index: int, candidate: Candidate, future: "Future[bool]") -> None:
        nonlocal completed
        completed += 1
        try:
            job_related = bool(future.result())
        except Exception as exc:
            logger.warning('Classifier error for "%s", keeping it: %s', candidate.subject, exc)
            if debug is not None:
                debug.note_error(f"classify {candidate.message_id}: {type(exc).__name__}: {exc}")
            job_related = True
        if not job_related:
            logger.info('Classifier rejected "%s"', candidate.subject)
        keep[index] = job_related
        if channel is not None:
            channel.status(f"Classifying… {completed}/{total}")

    _run_batch(candidates, lambda c: classifier.classify(c.email_content), on_done)

    accepted = [c for c, ok in zip(candidates, keep) if ok]
    logger.info("%d keyword-matched -> %d after AI classification", total, len(accepted))
    return accepted


def fallback_suggestion(candidate: Candidate) -> Suggestion:
    content = candidate.email_content or candidate.notes
    return Suggestion.from_candidate(
        candidate,
        ai_summary=content[:FALLBACK_SUMMARY_LIMIT] + "...",
        ai_action_items=list(FALLBACK_ACTION_ITEMS),
        ai_processed=False,
    )


def summarize_candidates(
    candidates: Sequence[Candidate],
    summarizer: SummarizerLike,
    channel: Optional[ProgressChannel] = None,
    debug: Optional[SyncDebug] = None,
) -> List[Suggestion]:
    """
    Turn every candidate into a Suggestion.

    The model's status replaces the keyword status on success; any failure
    keeps the keyword status and marks the suggestion unprocessed.
    """
    results: List[Optional[Suggestion]] = [None] * len(candidates)
    total = len(candidates)
    completed = 0

    def on_done(index: int, candidate: Candidate, future: "Future[AISummary]") -> None:
        nonlocal completed
        completed += 1
        try:
            ai = future.result()
            results[index] = Suggestion.from_candidate(
                candidate,
                status=ai.status,
                ai_summary=ai.summary,
                ai_action_items=list(ai.action_items),
                ai_processed=True,
            )
        except Exception as exc:
            logger.warning('Summarization error for "%s": %s', candidate.subject, exc)
            if debug is not None:
                debug.note_error(f"summarize {candidate.message_id}: {type(exc).__name__}: {exc}")
            results[index] = fallback_suggestion(candidate)
        if channel is not None:
            channel.status(f"Summarizing… {completed}/{total}")

    _run_batch(candidates, lambda c: summarizer.summarize(c.email_content), on_done)

    return [s for s in results if s is not None]
