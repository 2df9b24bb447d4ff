"""
Text generator — motivational prose from an OpenAI chat model.

Treated as unreliable: generate() raises TextGenerationError on any failure
or empty output, and the orchestrator falls back to the templates in
app/services/messages.py. No retries here; a slow generator would only
delay the reply further.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from app.core.errors import TextGenerationError
from app.services.messages import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class TextGenerator:

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        *,
        max_tokens: int = 250,
        temperature: float = 0.8,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(self, prompt: str, context: Optional[dict[str, Any]] = None) -> str:
        """
        Complete `prompt`. `context["system"]` overrides the system prompt.
        """
        system = (context or {}).get("system", SYSTEM_PROMPT)
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.warning("Text generation failed: %s", e)
            raise TextGenerationError(str(e)) from e

        text = ""
        if response.choices:
            text = (response.choices[0].message.content or "").strip()
        if not text:
            raise TextGenerationError("empty completion")
        return text
