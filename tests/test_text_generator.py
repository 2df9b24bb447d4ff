"""
Tests for the OpenAI-backed text generator, with a stub client.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from app.core.errors import TextGenerationError
from app.services.messages import SYSTEM_PROMPT
from app.services.text_generator import TextGenerator


class StubCompletions:
    def __init__(self, content="  Get after it.  ", error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        if self.content is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))]
        )


def _generator(completions: StubCompletions) -> TextGenerator:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return TextGenerator("sk-test", "gpt-3.5-turbo", client=client)


def test_generate():
    completions = StubCompletions()
    assert _generator(completions).generate("How was my day?") == "Get after it."

    call = completions.calls[0]
    assert call["model"] == "gpt-3.5-turbo"
    assert call["max_tokens"] == 250
    assert call["temperature"] == 0.8
    assert call["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "How was my day?"},
    ]


def test_system_prompt_override():
    completions = StubCompletions()
    _generator(completions).generate("hi", {"system": "Be brief."})
    assert completions.calls[0]["messages"][0]["content"] == "Be brief."


def test_api_error():
    with pytest.raises(TextGenerationError) as exc:
        _generator(StubCompletions(error=OpenAIError("quota exceeded"))).generate("hi")
    assert "quota exceeded" in exc.value.message


@pytest.mark.parametrize("content", [None, "   "])
def test_empty_completion(content):
    with pytest.raises(TextGenerationError):
        _generator(StubCompletions(content=content)).generate("hi")
