from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from job_copilot.models import Candidate, RawMessage
from job_copilot.pipeline.candidates import build_candidate
from job_copilot.pipeline.dedup import dedupe_by_conversation
from job_copilot.rules.BaseRule import BaseRule
from job_copilot.rules.rules import AcceptAnyRule, LenientJobRule, StrictJobRule

logger = logging.getLogger(__name__)

ACCEPT_ANY_LIMIT = 10


@dataclass(frozen=True)
class RelevanceTier:
    name: str
    rule: BaseRule
    # Only the first `limit` messages (newest first) are considered; None = all.
    limit: Optional[int] = None

    def scope(self, messages: Sequence[RawMessage]) -> Sequence[RawMessage]:
        if self.limit is None:
            return messages
        return messages[: self.limit]


def default_tiers(accept_any_limit: int = ACCEPT_ANY_LIMIT) -> Tuple[RelevanceTier, ...]:
    # Strictest first; each later tier is only tried if the previous found nothing.
    return (
        RelevanceTier("strict", StrictJobRule()),
        RelevanceTier("lenient", LenientJobRule()),
        RelevanceTier("accept_any", AcceptAnyRule(), limit=accept_any_limit),
    )


DEFAULT_TIERS = default_tiers()


def candidates_for_tier(
    messages: Sequence[RawMessage],
    tier: RelevanceTier,
    *,
    today: date | None = None,
) -> List[Candidate]:
    built = [build_candidate(m, tier.rule, today=today) for m in tier.scope(messages)]
    # First occurrence per conversation wins, before any model call is spent.
    return dedupe_by_conversation(c for c in built if c is not None)


def select_candidates(
    messages: Sequence[RawMessage],
    tiers: Sequence[RelevanceTier] = DEFAULT_TIERS,
    *,
    today: date | None = None,
) -> Tuple[Optional[str], List[Candidate]]:
    """
    Evaluate tiers lazily in order; return the first tier yielding candidates.

    Returns (tier_name, candidates); (None, []) if every tier came up empty.
    """
    for tier in tiers:
        candidates = candidates_for_tier(messages, tier, today=today)
        logger.info("Tier %s matched %d of %d messages", tier.name, len(candidates), len(messages))
        if candidates:
            return tier.name, candidates
    return None, []
