from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from job_copilot.models import RawMessage


@dataclass(frozen=True)
class RuleMatch:
    """Result of a rule match, with the signal that triggered it."""
    matched: bool
    reason: str = ""


class BaseRule(ABC):
    """
    Base class for relevance rules.

    Design goals:
    - Provide consistent, reusable text matching helpers.
    - Keep rule logic readable and declarative.
    - Rules are pure: no I/O, no model calls.
    """

    # Human-/debug-friendly unique name
    name: str = "base_rule"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    # --- Helpers (None-safe, case-insensitive) ---

    def norm(self, s: str | None) -> str:
        """Normalize text for matching (None-safe, lowercased)."""
        return (s or "").lower()

    def subject(self, mail: RawMessage) -> str:
        return self.norm(mail.subject)

    def sender(self, mail: RawMessage) -> str:
        return self.norm(mail.sender)

    def body(self, mail: RawMessage) -> str:
        return self.norm(mail.body_text or mail.snippet)

    def haystack(self, mail: RawMessage) -> str:
        """Subject, body and sender as one lowercased string."""
        return f"{self.subject(mail)} {self.body(mail)} {self.sender(mail)}"

    def first_needle(self, text: str | None, needles: Sequence[str]) -> str | None:
        """The first needle contained in text (case-insensitive), or None."""
        t = self.norm(text)
        for n in needles:
            if n.lower() in t:
                return n
        return None

    def regex(self, text: str | None, pattern: str) -> bool:
        """Regex search on text (case-insensitive)."""
        return bool(re.search(pattern, self.norm(text), flags=re.IGNORECASE))

    # --- Rule API ---

    @abstractmethod
    def match_info(self, mail: RawMessage) -> RuleMatch:
        """Return whether the mail matched and why."""
        raise NotImplementedError

    def match(self, mail: RawMessage) -> bool:
        return self.match_info(mail).matched
