"""
Answer Composer
----------------
Turns federated search results into a single generation call:

  - No results -> NO_CONTEXT_RESPONSE, and the generator is never called
  - Otherwise  -> numbered "Source N (label):" blocks in distance order,
                  placed into SYSTEM_PROMPT next to the user's question

The generator's text is returned verbatim. Generation errors propagate to
the caller unretried.
"""
from __future__ import annotations

from typing import Any, Optional

from langsmith import traceable
from loguru import logger

from docqa.generation.prompts import NO_CONTEXT_RESPONSE, SOURCE_TEMPLATE, SYSTEM_PROMPT
from docqa.schemas import SearchResult


def build_context(results: list[SearchResult], max_results: Optional[int] = None) -> str:
    """Number each passage from 1 and join the blocks with a blank line."""
    selected = results if max_results is None else results[:max_results]
    return "\n\n".join(
        SOURCE_TEMPLATE.format(index=i, source=result.source, document=result.document)
        for i, result in enumerate(selected, start=1)
    )


class AnswerComposer:
    """Formats retrieved passages for the generator and returns its answer."""

    def __init__(
        self,
        generator: Any,
        persona: str = "the portfolio owner",
        max_context_results: Optional[int] = None,
    ) -> None:
        self.generator = generator
        self.persona = persona
        self.max_context_results = max_context_results

    def build_prompt(self, results: list[SearchResult]) -> str:
        context = build_context(results, self.max_context_results)
        return SYSTEM_PROMPT.format(persona=self.persona, context=context)

    @traceable(name="compose_answer", run_type="chain")
    def compose(self, question: str, results: list[SearchResult]) -> str:
        if not results:
            logger.info("[Composer] No passages retrieved - returning fallback answer")
            return NO_CONTEXT_RESPONSE

        system_prompt = self.build_prompt(results)
        logger.debug(f"[Composer] {len(results)} passages | prompt={len(system_prompt)} chars")
        return self.generator.generate(system_prompt, question).text
