from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from conftest import FakeMailbox, StubClassifier, gmail_message

from job_copilot.ai.summarizer import AISummary
from job_copilot.app.session import SuggestionSession
from job_copilot.context import SyncContext
from job_copilot.models import SyncResult
from job_copilot.pipeline.orchestrator import run_sync
from job_copilot.storage.applications import ApplicationStore
from job_copilot.storage.cache import load_cache


class EchoSummarizer:
    def summarize(self, text: str) -> AISummary:
        return AISummary(summary=text.split("\n")[0], status="Applied", action_items=[])


@pytest.fixture
def store(tmp_path: Path) -> ApplicationStore:
    return ApplicationStore(tmp_path / "applications.json")


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox(
        [
            gmail_message("m1", thread_id="t1", subject="Your application to Acme", sender="jobs@acme.io"),
            gmail_message("m2", thread_id="t2", subject="Interview with Globex", sender="talent@globex.com"),
        ]
    )


def _sync(mailbox: FakeMailbox, store: ApplicationStore) -> SyncResult:
    return run_sync(
        SyncContext(mailbox, "me@example.com"),
        classifier=StubClassifier(),
        summarizer=EchoSummarizer(),
        confirmed=store,
        today=date(2025, 10, 6),
    )


def test_accept_removes_from_list_and_cache_and_later_syncs(
    tmp_path: Path, mailbox: FakeMailbox, store: ApplicationStore
) -> None:
    cache_path = tmp_path / "suggestions.json"
    session = SuggestionSession(cache_path, store, "me@example.com")
    session.apply_sync(_sync(mailbox, store))
    assert [s.message_id for s in session.suggestions] == ["m1", "m2"]

    confirmed = session.accept("m1")

    assert confirmed.thread_id == "t1"
    assert [s.message_id for s in session.suggestions] == ["m2"]
    assert [s.message_id for s in load_cache(cache_path, "me@example.com").suggestions] == ["m2"]

    # The next sync does not bring it back.
    session.apply_sync(_sync(mailbox, store))
    assert [s.message_id for s in session.suggestions] == ["m2"]


def test_accept_unknown_message_raises(tmp_path: Path, store: ApplicationStore) -> None:
    session = SuggestionSession(tmp_path / "suggestions.json", store, "me@example.com")
    with pytest.raises(KeyError):
        session.accept("missing")


def test_accept_all_confirms_everything(tmp_path: Path, mailbox: FakeMailbox, store: ApplicationStore) -> None:
    session = SuggestionSession(tmp_path / "suggestions.json", store, "me@example.com")
    session.apply_sync(_sync(mailbox, store))

    accepted = session.accept_all()

    assert sorted(a.message_id for a in accepted) == ["m1", "m2"]
    assert session.suggestions == []
    assert len(store.list()) == 2


def test_failed_sync_keeps_cached_suggestions(tmp_path: Path, mailbox: FakeMailbox, store: ApplicationStore) -> None:
    session = SuggestionSession(tmp_path / "suggestions.json", store, "me@example.com")
    session.apply_sync(_sync(mailbox, store))

    session.apply_sync(SyncResult(connected=False, error="Gmail sync failed: boom"))

    assert len(session.suggestions) == 2


def test_new_session_for_other_mailbox_starts_empty(
    tmp_path: Path, mailbox: FakeMailbox, store: ApplicationStore
) -> None:
    cache_path = tmp_path / "suggestions.json"
    SuggestionSession(cache_path, store, "a@x.com").apply_sync(
        SyncResult(connected=True, suggestions=_sync(mailbox, store).suggestions, mailbox_identity="a@x.com")
    )
    assert len(SuggestionSession(cache_path, store, "a@x.com").suggestions) == 2

    assert SuggestionSession(cache_path, store, "b@y.com").suggestions == []
    assert SuggestionSession(cache_path, store, "a@x.com").suggestions == []


def test_session_drops_suggestions_confirmed_elsewhere(
    tmp_path: Path, mailbox: FakeMailbox, store: ApplicationStore
) -> None:
    cache_path = tmp_path / "suggestions.json"
    SuggestionSession(cache_path, store, "me@example.com").apply_sync(_sync(mailbox, store))

    store.create(company="Globex", role="Engineer", thread_id="t2")

    assert [s.message_id for s in SuggestionSession(cache_path, store, "me@example.com").suggestions] == ["m1"]
