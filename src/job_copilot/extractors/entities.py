from __future__ import annotations

import re
from email.utils import parseaddr

from job_copilot.models import UNKNOWN_COMPANY, UNKNOWN_ROLE

NO_REPLY_PATTERN = re.compile(r"\s*\b(noreply|no-reply|donotreply|do-not-reply)\b\s*", re.IGNORECASE)
CONNECTOR_PATTERN = re.compile(r"\s+(at|via)\s+|\s*@\s+", re.IGNORECASE)
DOMAIN_PREFIX_PATTERN = re.compile(r"^(mail|email|careers|jobs|recruit|recruiting|talent|hire)\.", re.IGNORECASE)

ROLE_PATTERNS = (
    re.compile(r"application\s+for\s+(?:the\s+)?([^\-–—]+?)(?:\s+(?:at|with)\s+|\s*[-–—]|$)", re.IGNORECASE),
    re.compile(r"(?:position|role)\s*:\s*([^\-–—,]+)", re.IGNORECASE),
    # Title-cased job titles: "Interview for Senior Backend Engineer".
    re.compile(r"((?:[A-Z][\w+#]*\s+){0,2}(?:Engineer|Developer|Analyst|Designer|Manager))\b"),
    # "Senior Data Analyst - Globex"
    re.compile(r"^(?:(?:re|fwd?):\s*)*([^\-–—]+?)\s*[-–—]", re.IGNORECASE),
)


def _plausible(name: str) -> bool:
    return 2 < len(name) < 80 and "@" not in name


def extract_company(from_header: str | None) -> str:
    """
    Best-effort company name from a From header.

    'Acme Talent <careers@acme.io>' -> 'Acme Talent'
    'careers@mail.acme.io'          -> 'Acme'
    """
    if not from_header:
        return UNKNOWN_COMPANY

    display, address = parseaddr(from_header)
    if not address and "@" in from_header:
        address = from_header.strip()

    name = NO_REPLY_PATTERN.sub(" ", display.strip().strip('"'))
    name = CONNECTOR_PATTERN.sub(" ", name)
    name = re.sub(r"\s+", " ", name).strip()
    if _plausible(name):
        return name

    domain = address.rpartition("@")[2].strip().strip(">").lower()
    if domain:
        clean = DOMAIN_PREFIX_PATTERN.sub("", domain).split(".")[0]
        if clean:
            return clean[:1].upper() + clean[1:]

    return UNKNOWN_COMPANY


def extract_role(subject: str | None) -> str:
    """Best-effort role title from a subject line."""
    if not subject or not subject.strip():
        return UNKNOWN_ROLE

    for pattern in ROLE_PATTERNS:
        m = pattern.search(subject)
        if m and m.group(1):
            role = m.group(1).strip()
            if 2 < len(role) < 100:
                return role

    lowered = subject.lower()
    if "engineer" in lowered:
        return "Software Engineer"
    if "developer" in lowered:
        return "Developer"
    if "intern" in lowered:
        return "Intern"
    return subject.strip()[:60] or UNKNOWN_ROLE
