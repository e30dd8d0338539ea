from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from job_copilot.models import Suggestion

logger = logging.getLogger(__name__)

@dataclass
class CacheEntry:
    # Suggestions from the last successful sync, minus accepted ones.
    suggestions: list[Suggestion] = field(default_factory=list)
    saved_at: Optional[str] = None
    # The mailbox the suggestions were computed for; never reused for another.
    mailbox_identity: Optional[str] = None

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _same_mailbox(stored: Optional[str], current: Optional[str]) -> bool:
    if not stored or not current:
        return False
    return stored.strip().lower() == current.strip().lower()

def load_cache(path: Path, mailbox_identity: Optional[str]) -> CacheEntry:
    """
    Load the cache for the currently authenticated mailbox.

    A cache stamped with a different identity (or none) is deleted and an
    empty entry is returned: suggestions from two mailboxes never mix.
    If the current identity is unknown (Gmail not reachable right now) the
    file is left alone and nothing is loaded.
    """
    if mailbox_identity is None:
        logger.info("Mailbox identity unknown, not loading suggestion cache")
        return CacheEntry()
    if not path.exists():
        return CacheEntry(mailbox_identity=mailbox_identity)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Discarding unreadable suggestion cache %s: %s", path, exc)
        clear_cache(path)
        return CacheEntry(mailbox_identity=mailbox_identity)

    stored_identity = data.get("mailbox_identity")
    if not _same_mailbox(stored_identity, mailbox_identity):
        logger.info("Mailbox changed (%s -> %s), discarding suggestion cache", stored_identity, mailbox_identity)
        clear_cache(path)
        return CacheEntry(mailbox_identity=mailbox_identity)

    return CacheEntry(
        suggestions=[Suggestion.from_dict(s) for s in data.get("suggestions") or [] if isinstance(s, dict)],
        saved_at=data.get("saved_at"),
        mailbox_identity=stored_identity,
    )

def save_cache(path: Path, entry: CacheEntry) -> CacheEntry:
    """Replace the cache wholesale; returns the entry with its new timestamp."""
    entry.saved_at = _now()
    payload = {
        "mailbox_identity": entry.mailbox_identity,
        "saved_at": entry.saved_at,
        "suggestions": [s.to_dict() for s in entry.suggestions],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    # Write-then-rename so a crash never leaves a half-written cache.
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return entry

def clear_cache(path: Path) -> None:
    path.unlink(missing_ok=True)
