"""
LLM Generators
---------------
Two generator implementations with an identical generate() interface:

  OpenAIGenerator    -- OpenAI chat models (gpt-4o-mini, gpt-4o)
  AnthropicGenerator -- Anthropic Claude models

Both take a fully formatted system prompt plus the user's question and
return a GenerationResult. They never retry: any SDK error is raised as
GenerationError and the request fails as a whole.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from langsmith import traceable
from loguru import logger

from docqa.errors import GenerationError


# ---------------------------------------------------------------------------
# Model pricing table  (input_$/M, output_$/M)
# ---------------------------------------------------------------------------

_MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o-mini":               (0.150,  0.600),
    "gpt-4o":                    (2.500, 10.000),
    "claude-haiku-4-5-20251001": (0.800,  4.000),
    "claude-sonnet-4-6":         (3.000, 15.000),
}


def _cost_usd(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Compute estimated cost in USD for a given model and token counts."""
    rates = _MODEL_PRICING.get(model, (0.150, 0.600))
    return (prompt_tokens * rates[0] + completion_tokens * rates[1]) / 1_000_000


@dataclass
class GenerationResult:
    """Raw text from one generation call plus usage (provider-agnostic)."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def estimated_cost_usd(self) -> float:
        return _cost_usd(self.model, self.prompt_tokens, self.completion_tokens)


# ---------------------------------------------------------------------------
# OpenAI Generator
# ---------------------------------------------------------------------------

class OpenAIGenerator:
    """Chat-completion call with the system prompt and the user's question."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 1024,
        temperature: float = 0.2,
        client: Optional[Any] = None,
    ) -> None:
        from openai import OpenAI  # lazy import keeps import graph clean
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client if client is not None else OpenAI()

    @traceable(name="generate_openai", run_type="llm")
    def generate(self, system_prompt: str, question: str) -> GenerationResult:
        from openai import OpenAIError

        logger.debug(f"[OpenAIGenerator] {self.model} | question={question[:60]!r}")
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": question},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            text = response.choices[0].message.content or ""
            usage = response.usage
            prompt_tok = usage.prompt_tokens if usage else 0
            comp_tok = usage.completion_tokens if usage else 0
        except OpenAIError as exc:
            raise GenerationError(f"OpenAI generation failed ({self.model}): {exc}") from exc
        except (IndexError, AttributeError, TypeError) as exc:
            raise GenerationError(f"Malformed OpenAI response ({self.model}): {exc}") from exc

        logger.info(
            f"[OpenAIGenerator] Done | prompt={prompt_tok} completion={comp_tok} | "
            f"cost=${_cost_usd(self.model, prompt_tok, comp_tok):.5f}"
        )
        return GenerationResult(
            text=text,
            model=self.model,
            prompt_tokens=prompt_tok,
            completion_tokens=comp_tok,
        )


# ---------------------------------------------------------------------------
# Anthropic Generator
# ---------------------------------------------------------------------------

class AnthropicGenerator:
    """
    Same contract on the Anthropic Messages API.

    The Anthropic SDK passes the system prompt as a separate `system`
    parameter (not inside the messages list).
    """

    def __init__(
        self,
        model: str = "claude-haiku-4-5-20251001",
        max_tokens: int = 1024,
        temperature: float = 0.2,
        client: Optional[Any] = None,
    ) -> None:
        from anthropic import Anthropic  # lazy import
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client if client is not None else Anthropic()

    @traceable(name="generate_anthropic", run_type="llm")
    def generate(self, system_prompt: str, question: str) -> GenerationResult:
        from anthropic import AnthropicError

        logger.debug(f"[AnthropicGenerator] {self.model} | question={question[:60]!r}")
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": question}],
            )
            text = response.content[0].text if response.content else ""
            prompt_tok = response.usage.input_tokens
            comp_tok = response.usage.output_tokens
        except AnthropicError as exc:
            raise GenerationError(f"Anthropic generation failed ({self.model}): {exc}") from exc
        except (IndexError, AttributeError, TypeError) as exc:
            raise GenerationError(f"Malformed Anthropic response ({self.model}): {exc}") from exc

        logger.info(
            f"[AnthropicGenerator] Done | input={prompt_tok} output={comp_tok} | "
            f"cost=${_cost_usd(self.model, prompt_tok, comp_tok):.5f}"
        )
        return GenerationResult(
            text=text,
            model=self.model,
            prompt_tokens=prompt_tok,
            completion_tokens=comp_tok,
        )


def make_generator(gen_cfg: dict):
    """Instantiate the generator named by the `generation` config section."""
    provider = gen_cfg.get("provider", "openai")
    kwargs = {
        "max_tokens": gen_cfg.get("max_tokens", 1024),
        "temperature": gen_cfg.get("temperature", 0.2),
    }
    if gen_cfg.get("model"):
        kwargs["model"] = gen_cfg["model"]
    if provider == "anthropic":
        return AnthropicGenerator(**kwargs)
    if provider == "openai":
        return OpenAIGenerator(**kwargs)
    raise ValueError(f"Unknown generation provider '{provider}'. Allowed: ['anthropic', 'openai']")
