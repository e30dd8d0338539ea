from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from job_copilot.extractors.entities import extract_company, extract_role
from job_copilot.extractors.status import infer_status
from job_copilot.models import (
    DEFAULT_STATUS,
    UNKNOWN_COMPANY,
    UNKNOWN_ROLE,
    Candidate,
    RawMessage,
)
from job_copilot.parsing.parser import build_email_content
from job_copilot.rules.BaseRule import BaseRule

logger = logging.getLogger(__name__)

NOTES_LIMIT = 200
DEFAULT_SUBJECT = "Job Application"


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def parse_applied_date(date_header: str | None, fallback: Optional[str] = None) -> str:
    """ISO date (UTC) of a Date header; fallback (default: today) if unparsable."""
    fallback = fallback or _today()
    if not date_header:
        return fallback
    try:
        parsed = parsedate_to_datetime(date_header)
    except (TypeError, ValueError, IndexError):
        return fallback
    if parsed is None:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).date().isoformat()


def build_candidate(message: RawMessage, rule: BaseRule, *, today: date | None = None) -> Optional[Candidate]:
    """
    Candidate for message if rule considers it relevant, None otherwise.

    Never raises. A failing relevance check drops the message; a failing
    extraction after a positive match yields placeholder fields instead.
    """
    fallback_date = today.isoformat() if today else _today()

    try:
        verdict = rule.match_info(message)
    except Exception:
        logger.exception("Relevance check %s failed for message %s", rule.name, message.message_id)
        return None
    if not verdict.matched:
        return None

    subject = message.subject or DEFAULT_SUBJECT
    notes = (message.snippet or "")[:NOTES_LIMIT]
    try:
        email_content = build_email_content(message, subject=message.subject)
    except Exception:
        logger.exception("Could not build email content for %s", message.message_id)
        email_content = f"Subject: {subject}"

    try:
        return Candidate(
            subject=subject,
            company=extract_company(message.sender),
            role=extract_role(message.subject),
            status=infer_status(message.subject, message.body_text),
            applied_date=parse_applied_date(message.date, fallback_date),
            notes=notes,
            thread_id=message.thread_id,
            message_id=message.message_id,
            email_content=email_content,
        )
    except Exception:
        logger.exception("Extraction failed for message %s, using placeholders", message.message_id)
        return Candidate(
            subject=subject,
            company=UNKNOWN_COMPANY,
            role=UNKNOWN_ROLE,
            status=DEFAULT_STATUS,
            applied_date=fallback_date,
            notes=notes,
            thread_id=message.thread_id,
            message_id=message.message_id,
            email_content=email_content,
        )
