from __future__ import annotations

import logging
from typing import Optional, Protocol

from openai import OpenAI, OpenAIError

from job_copilot.errors import ModelProviderFailure

logger = logging.getLogger(__name__)


class LanguageModel(Protocol):
    def complete(self, prompt: str, *, system: str = "", max_tokens: int = 300) -> str: ...


class OpenAIModel:
    """Plain-text completions through the OpenAI Responses API."""

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        *,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self._timeout = timeout
        self._client = client

    def _openai(self) -> OpenAI:
        # Built on first use so a missing OPENAI_API_KEY surfaces as a failed call.
        if self._client is None:
            # No automatic retries: a failed call degrades to its fallback instead.
            self._client = OpenAI(timeout=self._timeout, max_retries=0)
        return self._client

    def complete(self, prompt: str, *, system: str = "", max_tokens: int = 300) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            resp = self._openai().responses.create(
                model=self.model,
                input=messages,
                max_output_tokens=max_tokens,
            )
        except OpenAIError as exc:
            raise ModelProviderFailure(f"{type(exc).__name__}: {exc}") from exc

        output_text = getattr(resp, "output_text", None)
        if not output_text:
            raise ModelProviderFailure("OpenAI response was empty.")
        return output_text
