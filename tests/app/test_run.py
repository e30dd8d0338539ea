from __future__ import annotations

import threading
from typing import List

import pytest
from conftest import EchoSummarizer, FakeMailbox, StubClassifier, gmail_message

from job_copilot.app import run
from job_copilot.app.run import AIStages, sync_once
from job_copilot.config.settings import Settings
from job_copilot.context import SyncContext
from job_copilot.pipeline.events import ProgressChannel, ProgressEvent
from job_copilot.pipeline.orchestrator import SyncHandle


def _stages() -> AIStages:
    return AIStages(classifier=StubClassifier(), summarizer=EchoSummarizer())  # type: ignore[arg-type]


def test_sync_once_reports_events_and_returns_result() -> None:
    mailbox = FakeMailbox(
        [gmail_message("m1", subject="Your application to Acme", sender="jobs@acme.io", body="Thanks for applying.")]
    )
    seen: List[ProgressEvent] = []

    result = sync_once(
        SyncContext(mailbox, "me@example.com"),
        settings=Settings(),
        ai=_stages(),
        progress_cb=seen.append,
    )

    assert [s.message_id for s in result.suggestions] == ["m1"]
    assert seen[-1].type == "done"
    assert all(not e.terminal for e in seen[:-1])


def test_sync_once_without_result_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_result(ctx: SyncContext, **kwargs) -> SyncHandle:
        channel = ProgressChannel()
        channel.error("worker died")
        thread = threading.Thread(target=lambda: None)
        thread.start()
        return SyncHandle(channel=channel, thread=thread)

    monkeypatch.setattr(run, "start_sync", no_result)

    with pytest.raises(RuntimeError, match="without producing a result"):
        sync_once(SyncContext.disconnected(), settings=Settings(), ai=_stages(), progress_cb=lambda event: None)
