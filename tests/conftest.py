from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from backend.app.deps import get_ai_stages, get_context, get_context_loader, get_store
from backend.app.main import app
from job_copilot.ai.summarizer import AISummary
from job_copilot.app.run import AIStages
from job_copilot.context import SyncContext
from job_copilot.errors import ModelProviderFailure
from job_copilot.storage.applications import ApplicationStore


def b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def gmail_message(
    message_id: str,
    *,
    thread_id: Optional[str] = None,
    subject: str = "",
    sender: str = "someone@example.com",
    body: str = "",
    date: str = "Mon, 06 Oct 2025 09:30:00 +0000",
    snippet: Optional[str] = None,
) -> Dict[str, Any]:
    """A Gmail 'full' message resource with a single text/plain part."""
    return {
        "id": message_id,
        "threadId": thread_id if thread_id is not None else f"t-{message_id}",
        "labelIds": ["INBOX"],
        "snippet": snippet if snippet is not None else body[:120],
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "Subject", "value": subject},
                {"name": "From", "value": sender},
                {"name": "Date", "value": date},
            ],
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64url(body)}},
            ],
        },
    }


class FakeMailbox:
    """In-memory Mailbox: messages listed newest first."""

    def __init__(self, messages: List[Dict[str, Any]], failing: Optional[set] = None):
        self.messages = list(messages)
        self.failing = set(failing or ())
        self.list_calls: List[tuple] = []
        self.fetched: List[str] = []

    def list_recent_message_ids(self, max_results: int, query: str = "newer_than:90d") -> List[str]:
        self.list_calls.append((max_results, query))
        return [m["id"] for m in self.messages][:max_results]

    def get_full_message(self, message_id: str) -> Dict[str, Any]:
        self.fetched.append(message_id)
        if message_id in self.failing:
            raise RuntimeError("backend error")
        for m in self.messages:
            if m["id"] == message_id:
                return m
        raise KeyError(message_id)


class BrokenMailbox(FakeMailbox):
    def list_recent_message_ids(self, max_results: int, query: str = "newer_than:90d") -> List[str]:
        raise RuntimeError("Gmail API unreachable")


class FakeModel:
    """LanguageModel answering through a function of the prompt."""

    def __init__(self, reply: Callable[[str], str] | str):
        self._reply = reply
        self.prompts: List[str] = []

    def complete(self, prompt: str, *, system: str = "", max_tokens: int = 300) -> str:
        self.prompts.append(prompt)
        if isinstance(self._reply, str):
            return self._reply
        return self._reply(prompt)


class FailingModel:
    def complete(self, prompt: str, *, system: str = "", max_tokens: int = 300) -> str:
        raise ModelProviderFailure("APIConnectionError: connection refused")


class StubClassifier:
    """Classifier with a fixed verdict per subject substring; default True."""

    def __init__(self, reject: tuple = (), fail: tuple = ()):
        self.reject = reject
        self.fail = fail
        self.calls: List[str] = []

    def classify(self, text: str) -> bool:
        self.calls.append(text)
        if any(word in text for word in self.fail):
            raise ModelProviderFailure("timeout")
        return not any(word in text for word in self.reject)


class EchoSummarizer:
    """Summarizer that repeats the subject line and reports an interview."""

    def summarize(self, text: str) -> AISummary:
        return AISummary(summary=text.split("\n")[0], status="Interviewing", action_items=["Reply"])


def parse_sse(text: str) -> List[dict]:
    return [json.loads(line[len("data: "):]) for line in text.splitlines() if line.startswith("data: ")]


@pytest.fixture
def api_store(tmp_path: Path) -> ApplicationStore:
    return ApplicationStore(tmp_path / "applications.json")


@pytest.fixture
def sync_context() -> SyncContext:
    return SyncContext.disconnected()


@pytest.fixture
def client(api_store: ApplicationStore, sync_context: SyncContext) -> Iterator[TestClient]:
    app.dependency_overrides[get_store] = lambda: api_store
    app.dependency_overrides[get_context] = lambda: sync_context
    app.dependency_overrides[get_context_loader] = lambda: (lambda: sync_context)
    app.dependency_overrides[get_ai_stages] = lambda: AIStages(
        classifier=StubClassifier(reject=("newsletter",)),  # type: ignore[arg-type]
        summarizer=EchoSummarizer(),  # type: ignore[arg-type]
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
