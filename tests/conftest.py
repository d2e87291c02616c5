"""Pytest configuration and shared in-memory collaborators."""
from __future__ import annotations

import math
from typing import Any, Optional

import pytest

from docqa.errors import EmbeddingError, GenerationError, ParseError, VectorStoreError
from docqa.generation.generator import GenerationResult
from docqa.registry.registry import InMemoryCollectionRegistry


class FakeParser:
    """Returns canned chunk lists keyed by file name."""

    def __init__(self, chunks_by_name: Optional[dict[str, Any]] = None) -> None:
        self.chunks_by_name = chunks_by_name or {}
        self.calls: list[str] = []

    def load_chunks(self, path) -> list[str]:
        name = getattr(path, "name", str(path))
        self.calls.append(name)
        chunks = self.chunks_by_name.get(name)
        if isinstance(chunks, Exception):
            raise chunks
        if chunks is None:
            raise ParseError(f"cannot parse {name}")
        return list(chunks)


class FakeEmbedder:
    """Deterministic 3-d vectors derived from text length and first letter."""

    def __init__(self, fail_on: Optional[str] = None, vectors: Optional[dict[str, list]] = None) -> None:
        self.fail_on = fail_on
        self.vectors = vectors or {}
        self.calls: list[str] = []

    def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError("embedding service unavailable")
        if text in self.vectors:
            return list(self.vectors[text])
        return [float(len(text)), float(ord(text[0])), 1.0]


class FakeVectorStore:
    """In-memory named collections with exact L2 nearest-neighbour queries."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, list]] = {}
        self.fail_queries: set[str] = set()
        self.fail_add = False
        self.query_calls: list[str] = []
        self.deleted: list[str] = []

    def create_collection(self, name: str) -> None:
        if name in self.collections:
            raise VectorStoreError(f"collection {name} already exists")
        self.collections[name] = {"ids": [], "documents": [], "embeddings": [], "metadatas": []}

    def add(self, name, ids, documents, embeddings, metadatas) -> None:
        if self.fail_add:
            raise VectorStoreError("write rejected")
        col = self.collections[name]
        col["ids"].extend(ids)
        col["documents"].extend(documents)
        col["embeddings"].extend(embeddings)
        col["metadatas"].extend(metadatas)

    def query(self, name: str, embedding: list[float], top_k: int) -> list[dict]:
        self.query_calls.append(name)
        if name in self.fail_queries or name not in self.collections:
            raise VectorStoreError(f"collection {name} does not exist")
        col = self.collections[name]
        hits = [
            {
                "document": doc,
                "distance": math.dist(vec, embedding),
                "metadata": meta,
            }
            for doc, vec, meta in zip(col["documents"], col["embeddings"], col["metadatas"])
        ]
        hits.sort(key=lambda h: h["distance"])
        return hits[:top_k]

    def delete_collection(self, name: str) -> None:
        self.deleted.append(name)
        self.collections.pop(name, None)

    def seed(self, name: str, rows: list[tuple[str, list[float]]]) -> None:
        self.create_collection(name)
        self.add(
            name,
            [f"chunk_{i}" for i in range(len(rows))],
            [doc for doc, _ in rows],
            [vec for _, vec in rows],
            [{"chunkIndex": i} for i in range(len(rows))],
        )


class FakeGenerator:
    """Records prompts and returns a canned answer (or raises)."""

    model = "fake-model"

    def __init__(self, answer: str = "I studied computer science.", fail: bool = False) -> None:
        self.answer = answer
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def generate(self, system_prompt: str, question: str) -> GenerationResult:
        self.calls.append((system_prompt, question))
        if self.fail:
            raise GenerationError("model overloaded")
        return GenerationResult(text=self.answer, model=self.model)


@pytest.fixture
def registry() -> InMemoryCollectionRegistry:
    return InMemoryCollectionRegistry()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def parser() -> FakeParser:
    return FakeParser()
