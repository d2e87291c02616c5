"""
QA Serving Pipeline
--------------------
Runs one question end to end:

    user question
        |
        v
    validation (empty / whitespace-only -> ValidationError)
        |
        v
    FederatedRetriever (embed once, query every registered collection)
        |
        v
    AnswerComposer (fallback when nothing retrieved, else one LLM call)
        |
        v
    QueryResult (answer + passages + timings)

Each call takes its own registry snapshot and shares no mutable state with
concurrent calls, so the API server can run queries in a thread pool.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field

from langsmith import traceable
from loguru import logger

from docqa.errors import DocQAError, ValidationError
from docqa.generation.composer import AnswerComposer
from docqa.generation.prompts import FAILURE_RESPONSE
from docqa.retrieval.federated import FederatedRetriever
from docqa.schemas import SearchResult


@dataclass
class QueryResult:
    """Full output from a single question. Timing fields are in milliseconds."""

    query: str
    answer: str
    results: list[SearchResult] = field(default_factory=list)
    failed: bool = False
    retrieval_ms: float = 0.0
    generation_ms: float = 0.0

    @property
    def total_ms(self) -> float:
        return self.retrieval_ms + self.generation_ms

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "answer": self.answer,
            "failed": self.failed,
            "results": [r.model_dump() for r in self.results],
            "latency_ms": {
                "retrieval": round(self.retrieval_ms, 1),
                "generation": round(self.generation_ms, 1),
                "total": round(self.total_ms, 1),
            },
        }


class QAPipeline:
    """
    Question answering over the registered document collections.

    Usage:
        pipeline = QAPipeline.from_config(load_config())
        result = pipeline.query("Where did you study?")
        print(result.answer)
    """

    def __init__(self, retriever: FederatedRetriever, composer: AnswerComposer) -> None:
        self.retriever = retriever
        self.composer = composer

    @classmethod
    def from_config(cls, cfg: dict) -> "QAPipeline":
        from docqa.embedding.embedder import Embedder
        from docqa.generation.generator import make_generator
        from docqa.registry.registry import FileCollectionRegistry
        from docqa.store.chroma_store import ChromaVectorStore

        emb_cfg = cfg["embedding"]
        gen_cfg = cfg["generation"]

        retriever = FederatedRetriever(
            registry=FileCollectionRegistry(cfg["paths"]["registry_file"]),
            embedder=Embedder(model=emb_cfg["model"], batch_size=emb_cfg["batch_size"]),
            store=ChromaVectorStore.from_config(cfg),
            top_k=cfg["search"]["top_k"],
        )
        composer = AnswerComposer(
            generator=make_generator(gen_cfg),
            persona=gen_cfg.get("persona", "the portfolio owner"),
            max_context_results=gen_cfg.get("max_context_results"),
        )
        return cls(retriever, composer)

    @traceable(name="qa_query", run_type="chain")
    def query(self, question: str) -> QueryResult:
        """
        Answer one question.

        Raises:
            ValidationError: question is empty or whitespace-only.
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question is required.")
        question = question.strip()

        logger.info(f"[QAPipeline] Query: {question[:100]!r}")

        t0 = time.perf_counter()
        try:
            results = self.retriever.search(question)
            retrieval_ms = (time.perf_counter() - t0) * 1000

            t1 = time.perf_counter()
            answer = self.composer.compose(question, results)
            generation_ms = (time.perf_counter() - t1) * 1000
        except Exception as exc:
            if isinstance(exc, DocQAError):
                logger.error(f"[QAPipeline] Error handling user question: {exc}")
            else:
                logger.exception(f"[QAPipeline] Unexpected error handling user question: {exc}")
            return QueryResult(
                query=question,
                answer=FAILURE_RESPONSE,
                failed=True,
                retrieval_ms=(time.perf_counter() - t0) * 1000,
            )

        logger.info(
            f"[QAPipeline] Complete | {len(results)} passages | "
            f"retrieve={retrieval_ms:.0f}ms generate={generation_ms:.0f}ms"
        )
        return QueryResult(
            query=question,
            answer=answer,
            results=results,
            retrieval_ms=retrieval_ms,
            generation_ms=generation_ms,
        )
