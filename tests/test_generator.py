"""Unit tests for the LLM generator adapters (no network)."""
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from docqa.errors import GenerationError
from docqa.generation.generator import (
    AnthropicGenerator,
    GenerationResult,
    OpenAIGenerator,
    make_generator,
)


class FakeCompletions:
    def __init__(self, content="Hello from the model", fail=False):
        self.content = content
        self.fail = fail
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.fail:
            raise OpenAIError("rate limited")
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30),
        )


def _generator(**kwargs):
    completions = FakeCompletions(**kwargs)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIGenerator(model="gpt-4o-mini", client=client), completions


class TestOpenAIGenerator:

    def test_system_and_user_messages(self):
        generator, completions = _generator()

        result = generator.generate("SYSTEM", "Where did you study?")

        assert isinstance(result, GenerationResult)
        assert result.text == "Hello from the model"
        assert result.total_tokens == 150
        assert result.estimated_cost_usd > 0
        (request,) = completions.requests
        assert request["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "Where did you study?"},
        ]

    def test_none_content_becomes_empty_string(self):
        generator, _ = _generator(content=None)
        assert generator.generate("s", "q").text == ""

    def test_failure_is_not_retried(self):
        generator, completions = _generator(fail=True)
        with pytest.raises(GenerationError):
            generator.generate("s", "q")
        assert len(completions.requests) == 1

    def test_empty_choices_become_generation_error(self):
        generator, completions = _generator()
        completions.create = lambda **kwargs: SimpleNamespace(choices=[], usage=None)

        with pytest.raises(GenerationError):
            generator.generate("s", "q")


class TestAnthropicGenerator:

    def _generator(self, response):
        messages = SimpleNamespace(create=lambda **kwargs: response)
        return AnthropicGenerator(client=SimpleNamespace(messages=messages))

    def test_text_and_usage(self):
        response = SimpleNamespace(
            content=[SimpleNamespace(text="Hi")],
            usage=SimpleNamespace(input_tokens=10, output_tokens=2),
        )
        result = self._generator(response).generate("s", "q")
        assert result.text == "Hi"
        assert result.total_tokens == 12

    def test_missing_usage_becomes_generation_error(self):
        response = SimpleNamespace(content=[SimpleNamespace(text="Hi")], usage=None)
        with pytest.raises(GenerationError):
            self._generator(response).generate("s", "q")


class TestMakeGenerator:

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            make_generator({"provider": "llamacpp"})
