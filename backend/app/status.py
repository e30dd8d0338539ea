from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from time import time
from typing import Any, Dict, Optional, List


@dataclass
class SyncStatus:
    state: str = "idle"
    detail: Optional[str] = None
    connected: Optional[bool] = None
    suggestion_count: int = 0
    debug: Dict[str, Any] = field(default_factory=dict)
    # Keep a small rolling window of recent progress messages for UI visibility.
    recent_messages: List[str] = field(default_factory=list)
    updated_at: float = field(default_factory=time)


class SyncStatusStore:
    MAX_RECENT = 50

    def __init__(self) -> None:
        self._lock = Lock()
        self._status = SyncStatus()

    def update(self, **fields: Any) -> None:
        # Lock ensures UI polling sees consistent snapshots across threads.
        with self._lock:
            for key, value in fields.items():
                if hasattr(self._status, key):
                    setattr(self._status, key, value)
            self._status.updated_at = time()

    def reset(self, detail: str) -> None:
        with self._lock:
            self._status = SyncStatus(state="running", detail=detail)

    def record_message(self, message: str) -> None:
        with self._lock:
            # Newest first, capped.
            self._status.recent_messages = ([message] + self._status.recent_messages)[: self.MAX_RECENT]
            self._status.detail = message
            self._status.updated_at = time()

    def snapshot(self) -> Dict[str, Any]:
        # Return a copy to avoid mutation by callers.
        with self._lock:
            return {
                "state": self._status.state,
                "detail": self._status.detail,
                "connected": self._status.connected,
                "suggestion_count": self._status.suggestion_count,
                "debug": dict(self._status.debug),
                "recent_messages": list(self._status.recent_messages),
                "updated_at": self._status.updated_at,
            }


sync_status_store = SyncStatusStore()
