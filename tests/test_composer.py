"""Unit tests for answer composition."""
import pytest

from docqa.errors import GenerationError
from docqa.generation.composer import AnswerComposer, build_context
from docqa.generation.prompts import NO_CONTEXT_RESPONSE
from docqa.schemas import SearchResult


def _result(text, source, distance):
    return SearchResult(document=text, distance=distance, source=source, collection=f"doc_{source}")


@pytest.fixture
def results():
    return [
        _result("I studied CS at State University.", "resume", 0.1),
        _result("Built a search engine in Rust.", "projects", 0.4),
    ]


class TestBuildContext:

    def test_numbered_blocks_joined_by_blank_line(self, results):
        assert build_context(results) == (
            "Source 1 (resume):\nI studied CS at State University.\n\n"
            "Source 2 (projects):\nBuilt a search engine in Rust."
        )

    def test_bounded(self, results):
        assert build_context(results, max_results=1) == (
            "Source 1 (resume):\nI studied CS at State University."
        )

    def test_empty(self):
        assert build_context([]) == ""


class TestAnswerComposer:

    def test_fallback_without_generation(self, generator):
        composer = AnswerComposer(generator)
        assert composer.compose("Where did you study?", []) == NO_CONTEXT_RESPONSE
        assert generator.calls == []

    def test_single_generation_call(self, generator, results):
        composer = AnswerComposer(generator, persona="Jane Doe")

        answer = composer.compose("Where did you study?", results)

        assert answer == generator.answer
        assert len(generator.calls) == 1
        system_prompt, question = generator.calls[0]
        assert question == "Where did you study?"
        assert "Jane Doe" in system_prompt
        assert build_context(results) in system_prompt

    def test_context_keeps_result_order(self, generator, results):
        AnswerComposer(generator).compose("q", results)
        system_prompt, _ = generator.calls[0]
        assert system_prompt.index("Source 1 (resume)") < system_prompt.index("Source 2 (projects)")

    def test_answer_returned_verbatim(self, generator, results):
        generator.answer = "  **Raw** answer\n with spacing  "
        assert AnswerComposer(generator).compose("q", results) == "  **Raw** answer\n with spacing  "

    def test_generation_error_propagates_without_retry(self, generator, results):
        generator.fail = True
        with pytest.raises(GenerationError):
            AnswerComposer(generator).compose("q", results)
        assert len(generator.calls) == 1
