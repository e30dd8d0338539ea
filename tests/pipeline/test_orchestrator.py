from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from conftest import BrokenMailbox, FailingModel, FakeMailbox, FakeModel, StubClassifier, gmail_message

from job_copilot.ai.classifier import RelevanceClassifier
from job_copilot.ai.summarizer import Summarizer
from job_copilot.context import SyncContext
from job_copilot.pipeline.events import ProgressChannel
from job_copilot.pipeline.orchestrator import run_sync, start_sync
from job_copilot.storage.applications import ApplicationStore

TODAY = date(2025, 10, 6)

SUMMARY_REPLY = (
    'Here is the analysis:\n{"summary": "Acme will not move forward.", '
    '"actionItems": ["Ask for feedback"], "suggestedStatus": "Rejected"}'
)


def _reply(prompt: str) -> str:
    if "Is this email about one of my job applications?" in prompt:
        return '{"job_related": true}'
    return SUMMARY_REPLY


@pytest.fixture
def model() -> FakeModel:
    return FakeModel(_reply)


@pytest.fixture
def acme_mailbox() -> FakeMailbox:
    return FakeMailbox(
        [
            gmail_message(
                "m1",
                thread_id="t1",
                subject="Re: Application for Backend Engineer",
                sender="careers@acme.io",
                body="Thank you for your time. Unfortunately we will not be moving forward.",
            ),
            gmail_message("m2", subject="Dinner?", body="Pizza tonight"),
        ]
    )


def _sync(ctx: SyncContext, model, **kwargs):
    channel = ProgressChannel()
    result = run_sync(
        ctx,
        classifier=kwargs.pop("classifier", RelevanceClassifier(model)),
        summarizer=kwargs.pop("summarizer", Summarizer(model)),
        channel=channel,
        today=TODAY,
        **kwargs,
    )
    return result, channel.collect()


def test_acme_rejection_end_to_end(acme_mailbox: FakeMailbox, model: FakeModel) -> None:
    result, events = _sync(SyncContext(acme_mailbox, "me@example.com"), model)

    assert result.connected
    assert result.mailbox_identity == "me@example.com"
    assert len(result.suggestions) == 1
    s = result.suggestions[0]
    assert (s.company, s.role, s.status) == ("Acme", "Backend Engineer", "Rejected")
    assert s.ai_processed is True
    assert s.ai_summary == "Acme will not move forward."
    assert s.ai_action_items == ["Ask for feedback"]
    assert result.debug is not None
    assert result.debug.tier == "strict"
    assert (result.debug.listed, result.debug.keyword_matched, result.debug.ai_classified) == (2, 1, 1)

    assert events[0].message == "Listing inbox messages…"
    assert [e.type for e in events].count("done") == 1
    assert events[-1].type == "done"
    assert events[-1].result["suggestions"][0]["message_id"] == "m1"


def test_disconnected_context_finishes_at_once(model: FakeModel) -> None:
    result, events = _sync(SyncContext.disconnected(), model)

    assert not result.connected
    assert result.suggestions == []
    assert [e.type for e in events] == ["done"]
    assert events[0].result["connected"] is False
    assert model.prompts == []


def test_empty_mailbox_reports_debug_error(model: FakeModel) -> None:
    result, events = _sync(SyncContext(FakeMailbox([]), "me@example.com"), model)

    assert result.connected
    assert result.suggestions == []
    assert result.debug is not None
    assert result.debug.error == "Gmail returned 0 messages"
    assert events[-1].type == "done"


def test_listing_failure_emits_a_single_error_event(model: FakeModel) -> None:
    result, events = _sync(SyncContext(BrokenMailbox([]), "me@example.com"), model)

    assert result.error is not None
    assert "Gmail API unreachable" in result.error
    assert [e.type for e in events if e.terminal] == ["error"]
    assert events[-1].message == result.error


def test_messages_of_one_thread_produce_one_suggestion(model: FakeModel) -> None:
    mailbox = FakeMailbox(
        [
            gmail_message("m1", thread_id="t1", subject="Interview invitation", sender="jobs@acme.io", body="Hi"),
            gmail_message("m2", thread_id="t1", subject="Your application", sender="jobs@acme.io", body="Hi"),
        ]
    )

    result, _ = _sync(SyncContext(mailbox, "me@example.com"), model)

    assert [s.message_id for s in result.suggestions] == ["m1"]


def test_confirmed_threads_are_excluded_before_any_model_call(
    tmp_path: Path, acme_mailbox: FakeMailbox, model: FakeModel
) -> None:
    store = ApplicationStore(tmp_path / "applications.json")
    store.create(company="Acme", role="Backend Engineer", thread_id="t1")

    result, _ = _sync(SyncContext(acme_mailbox, "me@example.com"), model, confirmed=store)

    assert result.suggestions == []
    assert model.prompts == []


def test_model_outage_fails_open_with_fallback_summaries(acme_mailbox: FakeMailbox) -> None:
    failing = FailingModel()
    result, _ = _sync(
        SyncContext(acme_mailbox, "me@example.com"),
        failing,
        classifier=RelevanceClassifier(failing),
        summarizer=Summarizer(failing),
    )

    assert len(result.suggestions) == 1
    s = result.suggestions[0]
    assert s.ai_processed is False
    assert s.status == "Rejected"
    assert s.ai_action_items == ["Review email manually"]
    assert result.debug is not None
    assert len(result.debug.errors) == 2


def test_classifier_rejection_removes_candidate(acme_mailbox: FakeMailbox, model: FakeModel) -> None:
    result, _ = _sync(
        SyncContext(acme_mailbox, "me@example.com"),
        model,
        classifier=StubClassifier(reject=("Backend Engineer",)),
    )

    assert result.suggestions == []
    assert result.debug is not None
    assert result.debug.keyword_matched == 1
    assert result.debug.ai_classified == 0


def test_failed_fetch_is_skipped_and_recorded(acme_mailbox: FakeMailbox, model: FakeModel) -> None:
    acme_mailbox.failing = {"m2"}

    result, _ = _sync(SyncContext(acme_mailbox, "me@example.com"), model)

    assert [s.message_id for s in result.suggestions] == ["m1"]
    assert result.debug is not None
    assert result.debug.fetched == 1
    assert any(err.startswith("m2:") for err in result.debug.errors)


def test_only_the_fetch_window_is_read(model: FakeModel) -> None:
    mailbox = FakeMailbox([gmail_message(f"m{i}", subject="Your application", body="x") for i in range(10)])

    _sync(SyncContext(mailbox, "me@example.com"), model, max_messages=10, fetch_limit=3)

    assert mailbox.list_calls == [(10, "newer_than:90d")]
    assert mailbox.fetched == ["m0", "m1", "m2"]


def test_resync_of_unchanged_mailbox_is_idempotent(acme_mailbox: FakeMailbox, model: FakeModel) -> None:
    ctx = SyncContext(acme_mailbox, "me@example.com")

    first, _ = _sync(ctx, model)
    second, _ = _sync(ctx, model)

    assert [s.to_dict() for s in first.suggestions] == [s.to_dict() for s in second.suggestions]


def test_start_sync_streams_events_from_a_background_thread(acme_mailbox: FakeMailbox, model: FakeModel) -> None:
    handle = start_sync(
        SyncContext(acme_mailbox, "me@example.com"),
        classifier=RelevanceClassifier(model),
        summarizer=Summarizer(model),
        today=TODAY,
    )

    events = list(handle.channel)
    result = handle.wait(timeout=5)

    assert events[-1].type == "done"
    assert result is not None
    assert [s.message_id for s in result.suggestions] == ["m1"]
