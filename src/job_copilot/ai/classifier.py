from __future__ import annotations

import re

from job_copilot.ai.client import LanguageModel
from job_copilot.ai.json_block import find_json_block
from job_copilot.errors import (
    ClassificationProviderFailure,
    MalformedModelOutput,
    ModelProviderFailure,
)

CLASSIFY_SYSTEM = (
    "You decide whether an email is about the recipient's own job application "
    "(confirmation, interview, assessment, offer, rejection or recruiter follow-up). "
    "Job alerts, newsletters and marketing are NOT job-application emails."
)

CLASSIFY_PROMPT = """Is this email about one of my job applications?

Answer with JSON only: {{"job_related": true}} or {{"job_related": false}}

Email content:
---
{content}
---"""

PROMPT_CONTENT_LIMIT = 2000

_YES_NO = re.compile(r"^\W*(yes|no|true|false)\b", re.IGNORECASE)


def parse_relevance(text: str) -> bool:
    """Read a relevance verdict from model output, or raise MalformedModelOutput."""
    block = find_json_block(text)
    if block is not None:
        for key in ("job_related", "is_job_related", "relevant"):
            value = block.get(key)
            if isinstance(value, bool):
                return value
    m = _YES_NO.match(text or "")
    if m:
        return m.group(1).lower() in ("yes", "true")
    raise MalformedModelOutput(f"Unreadable relevance verdict: {(text or '')[:80]!r}")


class RelevanceClassifier:
    """
    Binary job-relevance judgment.

    Raises on provider or parse failure; the caller decides the policy
    (the sync pipeline fails open).
    """

    def __init__(self, model: LanguageModel):
        self._model = model

    def classify(self, text: str) -> bool:
        prompt = CLASSIFY_PROMPT.format(content=(text or "")[:PROMPT_CONTENT_LIMIT])
        try:
            reply = self._model.complete(prompt, system=CLASSIFY_SYSTEM, max_tokens=20)
        except ModelProviderFailure as exc:
            raise ClassificationProviderFailure(str(exc)) from exc
        return parse_relevance(reply)
