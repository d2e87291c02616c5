"""Unit tests for fan-out-and-merge search across registered collections."""
import pytest

from docqa.retrieval.federated import FederatedRetriever

QUERY = "q"
QUERY_VEC = [0.0, 0.0, 0.0]


@pytest.fixture
def retriever(registry, embedder, store):
    embedder.vectors[QUERY] = QUERY_VEC
    return FederatedRetriever(registry=registry, embedder=embedder, store=store, top_k=2)


def _seed(store, registry, name, source, distances):
    store.seed(name, [(f"{name}-{d}", [d, 0.0, 0.0]) for d in distances])
    registry.append(name, source)


class TestFederatedRetriever:

    def test_empty_registry_returns_nothing(self, retriever, embedder, store):
        assert retriever.search(QUERY) == []
        assert embedder.calls == []
        assert store.query_calls == []

    def test_merges_and_sorts_by_distance(self, retriever, store, registry):
        _seed(store, registry, "doc_a", "a", [0.5, 3.0, 4.0])
        _seed(store, registry, "doc_b", "b", [0.1, 2.0])
        _seed(store, registry, "doc_c", "c", [1.0, 1.5])

        results = retriever.search(QUERY)

        distances = [r.distance for r in results]
        assert distances == sorted(distances)
        assert len(results) <= 2 * 2
        assert [r.document for r in results] == ["doc_b-0.1", "doc_a-0.5", "doc_c-1.0", "doc_c-1.5"]

    def test_results_tagged_with_source_and_collection(self, retriever, store, registry):
        _seed(store, registry, "doc_a", "resume", [0.5])

        (hit,) = retriever.search(QUERY)

        assert hit.source == "resume"
        assert hit.collection == "doc_a"
        assert hit.metadata == {"chunkIndex": 0}

    def test_query_embedded_once(self, retriever, embedder, store, registry):
        for name in ("doc_a", "doc_b", "doc_c"):
            _seed(store, registry, name, name[-1], [1.0])

        retriever.search(QUERY)

        assert embedder.calls == [QUERY]
        assert store.query_calls == ["doc_a", "doc_b", "doc_c"]

    def test_failing_collection_is_skipped(self, retriever, store, registry):
        _seed(store, registry, "doc_a", "a", [0.5])
        _seed(store, registry, "doc_b", "b", [0.1])
        _seed(store, registry, "doc_c", "c", [0.3])
        store.fail_queries.add("doc_b")

        results = retriever.search(QUERY)

        assert [r.collection for r in results] == ["doc_c", "doc_a"]

    def test_collection_missing_from_store_is_skipped(self, retriever, store, registry):
        registry.append("doc_deleted", "gone")
        _seed(store, registry, "doc_a", "a", [0.5])

        results = retriever.search(QUERY)

        assert [r.collection for r in results] == ["doc_a"]

    def test_unregistered_collection_is_unreachable(self, retriever, store, registry):
        store.seed("doc_orphan", [("orphan", [0.0, 0.0, 0.0])])
        _seed(store, registry, "doc_a", "a", [0.5])

        results = retriever.search(QUERY)

        assert "doc_orphan" not in store.query_calls
        assert [r.document for r in results] == ["doc_a-0.5"]

    def test_ties_keep_registry_order(self, retriever, store, registry):
        _seed(store, registry, "doc_a", "a", [1.0])
        _seed(store, registry, "doc_b", "b", [1.0])

        results = retriever.search(QUERY)

        assert [r.collection for r in results] == ["doc_a", "doc_b"]

    def test_top_k_override(self, retriever, store, registry):
        _seed(store, registry, "doc_a", "a", [0.1, 0.2, 0.3, 0.4, 0.5])

        assert len(retriever.search(QUERY, top_k=1)) == 1
        assert len(retriever.search(QUERY, top_k=5)) == 5

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True])
    def test_rejects_invalid_top_k(self, retriever, bad):
        with pytest.raises(ValueError):
            retriever.search(QUERY, top_k=bad)
