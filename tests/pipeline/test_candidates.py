from __future__ import annotations

from datetime import date

from conftest import gmail_message

from job_copilot.models import RawMessage
from job_copilot.parsing.parser import normalize_message
from job_copilot.pipeline.candidates import DEFAULT_SUBJECT, build_candidate, parse_applied_date
from job_copilot.rules.BaseRule import BaseRule, RuleMatch
from job_copilot.rules.rules import AcceptAnyRule, StrictJobRule

TODAY = date(2025, 10, 6)


class ExplodingRule(BaseRule):
    name = "exploding"

    def match_info(self, mail: RawMessage) -> RuleMatch:
        raise ValueError("boom")


def test_parse_applied_date_converts_to_utc() -> None:
    assert parse_applied_date("Tue, 07 Oct 2025 01:30:00 +0200", "2000-01-01") == "2025-10-06"


def test_parse_applied_date_falls_back_on_garbage() -> None:
    assert parse_applied_date("not a date", "2000-01-01") == "2000-01-01"
    assert parse_applied_date("", "2000-01-01") == "2000-01-01"


def test_build_candidate_for_acme_rejection() -> None:
    message = normalize_message(
        gmail_message(
            "m1",
            thread_id="t1",
            subject="Re: Application for Backend Engineer",
            sender="careers@acme.io",
            body="Thank you for your time. Unfortunately we will not be moving forward.",
        )
    )

    candidate = build_candidate(message, StrictJobRule(), today=TODAY)

    assert candidate is not None
    assert candidate.company == "Acme"
    assert candidate.role == "Backend Engineer"
    assert candidate.status == "Rejected"
    assert candidate.applied_date == "2025-10-06"
    assert candidate.thread_id == "t1"
    assert candidate.email_content.startswith("Subject: Re: Application for Backend Engineer\nFrom: careers@acme.io")


def test_build_candidate_returns_none_for_non_matching_mail() -> None:
    message = normalize_message(gmail_message("m1", subject="Dinner?", body="Pizza"))
    assert build_candidate(message, StrictJobRule(), today=TODAY) is None


def test_failing_rule_drops_the_message_instead_of_raising() -> None:
    message = normalize_message(gmail_message("m1", subject="Interview", body="x"))
    assert build_candidate(message, ExplodingRule(), today=TODAY) is None


def test_missing_subject_gets_default() -> None:
    message = normalize_message(gmail_message("m1", subject="", body="hello", date=""))

    candidate = build_candidate(message, AcceptAnyRule(), today=TODAY)

    assert candidate is not None
    assert candidate.subject == DEFAULT_SUBJECT
    assert candidate.applied_date == "2025-10-06"
