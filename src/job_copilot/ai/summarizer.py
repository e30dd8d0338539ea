from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from job_copilot.ai.client import LanguageModel
from job_copilot.ai.json_block import extract_json_block
from job_copilot.errors import (
    MalformedModelOutput,
    ModelProviderFailure,
    SummarizationProviderFailure,
)
from job_copilot.models import ApplicationStatus, coerce_status

SUMMARY_LIMIT = 200
MAX_ACTION_ITEMS = 3
PROMPT_CONTENT_LIMIT = 2000

SUMMARIZE_PROMPT = """You are a job application assistant. Analyze this job-related email and extract:
1. A concise 1-line summary (max 20 words)
2. Up to 3 action items (what the user should do based on this email)
3. The application status: one of [Applied, Interviewing, Offer, Rejected]

Return JSON with this structure:
{{
  "summary": "...",
  "actionItems": ["item1", "item2"],
  "suggestedStatus": "Applied|Interviewing|Offer|Rejected"
}}

Email content:
---
{content}
---"""


@dataclass(frozen=True)
class AISummary:
    summary: str
    status: ApplicationStatus
    action_items: List[str] = field(default_factory=list)


def validate_summary(data: Dict[str, Any]) -> AISummary:
    """Schema check for a decoded summary block."""
    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise MalformedModelOutput("Summary block has no summary text")

    raw_items = data.get("actionItems", data.get("action_items"))
    items: List[str] = []
    if isinstance(raw_items, list):
        items = [str(x).strip() for x in raw_items if isinstance(x, (str, int, float)) and str(x).strip()]

    status = coerce_status(data.get("suggestedStatus", data.get("status")))
    return AISummary(
        summary=summary.strip()[:SUMMARY_LIMIT],
        status=status,
        action_items=items[:MAX_ACTION_ITEMS],
    )


class Summarizer:
    def __init__(self, model: LanguageModel):
        self._model = model

    def summarize(self, text: str) -> AISummary:
        if not text or not text.strip():
            raise SummarizationProviderFailure("Empty email content")
        prompt = SUMMARIZE_PROMPT.format(content=text[:PROMPT_CONTENT_LIMIT])
        try:
            reply = self._model.complete(prompt, max_tokens=300)
        except ModelProviderFailure as exc:
            raise SummarizationProviderFailure(str(exc)) from exc
        return validate_summary(extract_json_block(reply))
