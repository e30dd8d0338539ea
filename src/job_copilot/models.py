from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Literal, Optional

ApplicationStatus = Literal["Applied", "Interviewing", "Offer", "Rejected"]

STATUSES: tuple[str, ...] = ("Applied", "Interviewing", "Offer", "Rejected")
DEFAULT_STATUS: ApplicationStatus = "Applied"

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_ROLE = "Unknown Role"


def coerce_status(value: Any) -> ApplicationStatus:
    """Return value if it is a canonical status, DEFAULT_STATUS otherwise."""
    if isinstance(value, str) and value in STATUSES:
        return value  # type: ignore[return-value]
    return DEFAULT_STATUS


@dataclass(frozen=True)
class RawMessage:
    message_id: str
    thread_id: str
    body_text: str
    snippet: str
    headers: Dict[str, str] = field(default_factory=dict)
    label_ids: List[str] = field(default_factory=list)

    def header(self, name: str) -> str:
        # Gmail keeps the sender's casing ("Subject" vs "subject").
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value or ""
        return ""

    @property
    def subject(self) -> str:
        return self.header("Subject")

    @property
    def sender(self) -> str:
        return self.header("From")

    @property
    def date(self) -> str:
        return self.header("Date")


@dataclass(frozen=True)
class Candidate:
    subject: str
    company: str
    role: str
    status: ApplicationStatus
    applied_date: str
    notes: str
    thread_id: str
    message_id: str
    email_content: str
    link: str = ""

    @property
    def dedup_key(self) -> str:
        return self.thread_id or self.message_id


@dataclass
class Suggestion:
    subject: str
    company: str
    role: str
    status: ApplicationStatus
    applied_date: str
    notes: str
    thread_id: str
    message_id: str
    link: str = ""
    ai_summary: Optional[str] = None
    ai_action_items: List[str] = field(default_factory=list)
    ai_processed: bool = False

    @property
    def dedup_key(self) -> str:
        return self.thread_id or self.message_id

    @classmethod
    def from_candidate(cls, candidate: Candidate, **overrides: Any) -> "Suggestion":
        values: Dict[str, Any] = {
            "subject": candidate.subject,
            "company": candidate.company,
            "role": candidate.role,
            "status": candidate.status,
            "applied_date": candidate.applied_date,
            "notes": candidate.notes,
            "thread_id": candidate.thread_id,
            "message_id": candidate.message_id,
            "link": candidate.link,
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Suggestion":
        # Ignore unknown keys so older cache files stay readable.
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["status"] = coerce_status(values.get("status"))
        values["ai_action_items"] = [str(x) for x in (values.get("ai_action_items") or [])]
        for key in ("subject", "company", "role", "applied_date", "notes", "thread_id", "message_id", "link"):
            values[key] = str(values.get(key) or "")
        return cls(**values)


@dataclass
class ConfirmedApplication:
    id: str
    company: str
    role: str
    status: ApplicationStatus
    applied_date: str
    notes: str = ""
    link: str = ""
    created_at: str = ""
    thread_id: str = ""
    message_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfirmedApplication":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["status"] = coerce_status(values.get("status"))
        return cls(**values)


@dataclass
class SyncDebug:
    listed: int = 0
    fetched: int = 0
    keyword_matched: int = 0
    ai_classified: int = 0
    summarized: int = 0
    tier: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def note_error(self, message: str) -> None:
        self.errors.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SyncResult:
    connected: bool
    suggestions: List[Suggestion] = field(default_factory=list)
    debug: Optional[SyncDebug] = None
    error: Optional[str] = None
    mailbox_identity: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "connected": self.connected,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "mailbox_identity": self.mailbox_identity,
        }
        if self.debug is not None:
            payload["debug"] = self.debug.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload
