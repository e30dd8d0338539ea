from __future__ import annotations

import json
import secrets
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from job_copilot.errors import ApplicationNotFound, InvalidApplication
from job_copilot.models import ConfirmedApplication, Suggestion, coerce_status
from job_copilot.pipeline.dedup import ConfirmedIndex

EDITABLE_FIELDS = ("company", "role", "status", "applied_date", "notes", "link")


def _new_id() -> str:
    # Time-ordered prefix plus randomness, short enough for URLs.
    return f"{int(time.time() * 1000):x}{secrets.token_hex(4)}"


class ApplicationStore:
    """
    Confirmed applications in a single JSON file.

    Confirmed records keep the Gmail thread/message ids they came from,
    so later syncs can exclude them.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    def _read(self) -> List[ConfirmedApplication]:
        if not self._path.exists():
            return []
        data = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        return [ConfirmedApplication.from_dict(item) for item in data if isinstance(item, dict)]

    def _write(self, apps: List[ConfirmedApplication]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps([a.to_dict() for a in apps], indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self._path)

    def list(self, status: Optional[str] = None) -> List[ConfirmedApplication]:
        with self._lock:
            apps = self._read()
        if status:
            apps = [a for a in apps if a.status == status]
        return apps

    def get(self, app_id: str) -> ConfirmedApplication:
        for app in self.list():
            if app.id == app_id:
                return app
        raise ApplicationNotFound(app_id)

    def create(
        self,
        *,
        company: str,
        role: str,
        status: Optional[str] = None,
        applied_date: Optional[str] = None,
        notes: str = "",
        link: str = "",
        thread_id: str = "",
        message_id: str = "",
    ) -> ConfirmedApplication:
        company = (company or "").strip()
        role = (role or "").strip()
        if not company or not role:
            raise InvalidApplication("Company and role are required")

        now = datetime.now(timezone.utc)
        app = ConfirmedApplication(
            id=_new_id(),
            company=company,
            role=role,
            status=coerce_status(status),
            applied_date=applied_date or now.date().isoformat(),
            notes=(notes or "").strip(),
            link=(link or "").strip(),
            created_at=now.isoformat(),
            thread_id=thread_id or "",
            message_id=message_id or "",
        )
        with self._lock:
            apps = self._read()
            apps.append(app)
            self._write(apps)
        return app

    def update(self, app_id: str, **changes: Any) -> ConfirmedApplication:
        with self._lock:
            apps = self._read()
            for app in apps:
                if app.id != app_id:
                    continue
                for key in EDITABLE_FIELDS:
                    value = changes.get(key)
                    if value is None:
                        continue
                    setattr(app, key, coerce_status(value) if key == "status" else str(value))
                self._write(apps)
                return app
        raise ApplicationNotFound(app_id)

    def delete(self, app_id: str) -> None:
        with self._lock:
            apps = self._read()
            remaining = [a for a in apps if a.id != app_id]
            if len(remaining) == len(apps):
                raise ApplicationNotFound(app_id)
            self._write(remaining)

    def confirm(self, suggestion: Suggestion) -> ConfirmedApplication:
        """Promote an accepted suggestion to a confirmed application."""
        return self.create(
            company=suggestion.company,
            role=suggestion.role,
            status=suggestion.status,
            applied_date=suggestion.applied_date,
            notes=suggestion.notes,
            link=suggestion.link,
            thread_id=suggestion.thread_id,
            message_id=suggestion.message_id,
        )

    def confirmed_index(self) -> ConfirmedIndex:
        return ConfirmedIndex.from_records(self.list())

    def as_dicts(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in self.list(status)]
