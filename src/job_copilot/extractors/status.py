from __future__ import annotations

from typing import Dict, Tuple

from job_copilot.models import DEFAULT_STATUS, ApplicationStatus

# Keyword status inference is a conservative fallback only.
# Only phrases that are unambiguous without full context belong here;
# the summarization model overrides the result once it succeeds.
# Order matters: the first status with a matching phrase wins.
STATUS_PHRASES: Dict[ApplicationStatus, Tuple[str, ...]] = {
    "Applied": (
        "we have received your application",
        "we received your application",
        "your application has been received",
        "application submitted",
        "job application successfully submitted",
    ),
    "Interviewing": (
        "invite you for an interview",
        "schedule an interview",
        "would like to interview you",
        "phone screen",
        "video interview",
        "technical interview",
    ),
    "Offer": (
        "we are pleased to offer",
        "extend an offer",
        "delighted to offer",
        "pleased to extend an offer",
    ),
    "Rejected": (
        "we will not be moving forward",
        "decided not to move forward with your application",
        "not selected for this position",
        "position has been filled",
        "we have decided to pursue other candidates",
    ),
}


def infer_status(subject: str | None, body: str | None) -> ApplicationStatus:
    text = f"{(subject or '').lower()} {(body or '').lower()}"
    for status, phrases in STATUS_PHRASES.items():
        for phrase in phrases:
            if phrase in text:
                return status
    return DEFAULT_STATUS
