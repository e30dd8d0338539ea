from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, Set, TypeVar


class _Keyed(Protocol):
    thread_id: str
    message_id: str

    @property
    def dedup_key(self) -> str: ...


T = TypeVar("T", bound=_Keyed)


def dedupe_by_conversation(items: Iterable[T]) -> List[T]:
    """Keep the first item per conversation (thread id, else message id)."""
    seen: Set[str] = set()
    out: List[T] = []
    for item in items:
        key = item.dedup_key
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


@dataclass(frozen=True)
class ConfirmedIndex:
    """Thread and message ids of applications the user already confirmed."""
    thread_ids: frozenset[str] = field(default_factory=frozenset)
    message_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_records(cls, records: Iterable[object]) -> "ConfirmedIndex":
        threads: Set[str] = set()
        messages: Set[str] = set()
        for record in records:
            thread_id = getattr(record, "thread_id", "") or ""
            message_id = getattr(record, "message_id", "") or ""
            if thread_id:
                threads.add(thread_id)
            if message_id:
                messages.add(message_id)
        return cls(thread_ids=frozenset(threads), message_ids=frozenset(messages))

    def contains(self, item: _Keyed) -> bool:
        if item.thread_id and item.thread_id in self.thread_ids:
            return True
        return bool(item.message_id) and item.message_id in self.message_ids


def cross_reference(items: Iterable[T], confirmed: ConfirmedIndex) -> List[T]:
    """Drop items already turned into a confirmed application."""
    return [item for item in items if not confirmed.contains(item)]
