"""
Federated Retriever
--------------------
Searches every collection listed in the registry and merges the hits:

  1. Snapshot the registry (empty -> no results, no API calls)
  2. Embed the query once
  3. Query each collection for top_k neighbours, sequentially
  4. Tag each hit with its source label and collection id
  5. Stable sort by ascending distance
  6. Keep top_k * 2 hits, leaving the composer some headroom

A collection that fails to answer (e.g. deleted out-of-band) is logged and
skipped; the remaining collections still contribute.
"""
from __future__ import annotations

from typing import Any, Optional

from langsmith import traceable
from loguru import logger

from docqa.errors import VectorStoreError
from docqa.registry.registry import CollectionRegistry
from docqa.schemas import SearchResult

DEFAULT_TOP_K = 3


class FederatedRetriever:
    """Fan-out nearest-neighbour search across per-document collections."""

    def __init__(
        self,
        registry: CollectionRegistry,
        embedder: Any,
        store: Any,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        _check_top_k(top_k)
        self.registry = registry
        self.embedder = embedder
        self.store = store
        self.top_k = top_k

    @traceable(name="federated_search", run_type="retriever")
    def search(self, query: str, top_k: Optional[int] = None) -> list[SearchResult]:
        """
        Args:
            query: Raw user question.
            top_k: Matches requested per collection (defaults to self.top_k).

        Returns:
            At most top_k * 2 SearchResults, nearest first.
        """
        top_k = self.top_k if top_k is None else top_k
        _check_top_k(top_k)

        collections = self.registry.load_all()
        if not collections:
            logger.info("[Search] Registry is empty - nothing to search")
            return []

        logger.info(f"[Search] Searching across {len(collections)} collections...")
        query_embedding = self.embedder.embed_text(query)

        all_results: list[SearchResult] = []
        for record in collections:
            try:
                hits = self.store.query(record.id, query_embedding, top_k)
            except VectorStoreError as exc:
                logger.warning(f"[Search] Skipping collection {record.id}: {exc}")
                continue

            all_results.extend(
                SearchResult(
                    document=hit["document"],
                    distance=hit["distance"],
                    metadata=hit.get("metadata") or {},
                    source=record.source,
                    collection=record.id,
                )
                for hit in hits
            )

        all_results.sort(key=lambda r: r.distance)
        results = all_results[: top_k * 2]

        logger.info(
            f"[Search] {len(all_results)} hits merged, returning {len(results)} "
            f"(best distance: {results[0].distance:.4f})" if results else "[Search] No results"
        )
        return results


def _check_top_k(top_k: int) -> None:
    if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
        raise ValueError(f"top_k must be a positive integer, got {top_k!r}")
