from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol

from job_copilot.models import ConfirmedApplication, Suggestion, SyncResult
from job_copilot.pipeline.dedup import ConfirmedIndex, cross_reference
from job_copilot.storage.cache import CacheEntry, load_cache, save_cache

logger = logging.getLogger(__name__)


class ConfirmedStore(Protocol):
    def confirm(self, suggestion: Suggestion) -> ConfirmedApplication: ...

    def confirmed_index(self) -> ConfirmedIndex: ...


class SuggestionSession:
    """
    Client-side view of pending suggestions for one mailbox.

    The in-memory list and the cache file are always rewritten together,
    so the cache never goes stale relative to what the user sees.
    """

    def __init__(self, cache_path: Path, store: ConfirmedStore, mailbox_identity: Optional[str]):
        self._cache_path = cache_path
        self._store = store
        self._entry: CacheEntry = load_cache(cache_path, mailbox_identity)
        # Records confirmed elsewhere since the cache was written.
        self._entry.suggestions = cross_reference(self._entry.suggestions, store.confirmed_index())

    @property
    def mailbox_identity(self) -> Optional[str]:
        return self._entry.mailbox_identity

    @property
    def suggestions(self) -> List[Suggestion]:
        return list(self._entry.suggestions)

    @property
    def saved_at(self) -> Optional[str]:
        return self._entry.saved_at

    def apply_sync(self, result: SyncResult) -> List[Suggestion]:
        """Replace the suggestion set with a successful sync result."""
        if result.error is not None or not result.connected:
            logger.info("Keeping cached suggestions: sync did not succeed")
            return self.suggestions
        self._entry = CacheEntry(
            suggestions=cross_reference(result.suggestions, self._store.confirmed_index()),
            mailbox_identity=result.mailbox_identity or self._entry.mailbox_identity,
        )
        save_cache(self._cache_path, self._entry)
        return self.suggestions

    def find(self, message_id: str) -> Optional[Suggestion]:
        for suggestion in self._entry.suggestions:
            if suggestion.message_id == message_id:
                return suggestion
        return None

    def accept(self, message_id: str) -> ConfirmedApplication:
        suggestion = self.find(message_id)
        if suggestion is None:
            raise KeyError(f"No pending suggestion for message {message_id}")

        confirmed = self._store.confirm(suggestion)
        # Re-apply cross-referencing: siblings in the same thread go too.
        self._entry.suggestions = cross_reference(
            [s for s in self._entry.suggestions if s.message_id != message_id],
            self._store.confirmed_index(),
        )
        save_cache(self._cache_path, self._entry)
        logger.info("Accepted %s (%s at %s)", message_id, confirmed.role, confirmed.company)
        return confirmed

    def accept_all(self) -> List[ConfirmedApplication]:
        accepted: List[ConfirmedApplication] = []
        for suggestion in self.suggestions:
            if self.find(suggestion.message_id) is not None:
                accepted.append(self.accept(suggestion.message_id))
        return accepted
