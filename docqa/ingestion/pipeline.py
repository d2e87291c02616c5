"""
Ingestion Pipeline - one document
-----------------------------------
    file path
        |
        v
    DocumentParser      ordered chunk texts
        |
        v
    VectorStore         create a fresh, uniquely named collection
        |
        v
    per non-empty chunk: Embedder + overlap with previous non-empty chunk
        |
        v
    VectorStore.add     one batch (ids, texts, vectors, metadatas)
        |
        v
    CollectionRegistry  append <collection id>|<source label>

Every collaborator is injected, so tests can run the pipeline against
in-memory fakes. Failures are scoped to the file: ingest_file() logs them
and returns None so a batch run can continue.
"""
from __future__ import annotations

import random
import re
import string
import time
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from docqa.chunking.overlap import significant_overlap
from docqa.errors import DocQAError, VectorStoreError
from docqa.registry.registry import CollectionRegistry
from docqa.schemas import ChunkMetadata

# Chroma collection names: 3-63 chars of [A-Za-z0-9_-], alphanumeric at both ends
MAX_COLLECTION_NAME = 63
_SUFFIX_LEN = 1 + 13 + 1 + 6      # _<ms timestamp>_<random>
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def source_label(file_name: str) -> str:
    """
    Coarse provenance label: the token before the first underscore,
    or the whole file name when there is none, lower-cased.

    >>> source_label("Resume_2024.pdf")
    'resume'
    """
    parts = file_name.split("_")
    if len(parts) > 1:
        return parts[0].lower()
    return file_name.lower()


def generate_collection_name(prefix: str = "collection") -> str:
    """<prefix>_<millisecond timestamp>_<6 random base-36 chars>."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(_RANDOM_ALPHABET, k=6))
    return f"{prefix}_{timestamp}_{suffix}"


def collection_prefix(file_name: str) -> str:
    """doc_<sanitised file stem>, short enough to leave room for the suffix."""
    stem = _UNSAFE_NAME_CHARS.sub("_", Path(file_name).stem).strip("_-") or "file"
    return f"doc_{stem}"[: MAX_COLLECTION_NAME - _SUFFIX_LEN]


def chunk_id(index: int) -> str:
    return f"chunk_{index}"


class IngestionPipeline:
    """
    Ingests one document into its own vector collection.

    Usage:
        pipeline = IngestionPipeline(parser, embedder, store, registry)
        collection_id = pipeline.ingest_file("doc/jane_resume.pdf")
    """

    def __init__(
        self,
        parser: Any,
        embedder: Any,
        store: Any,
        registry: CollectionRegistry,
    ) -> None:
        self.parser = parser
        self.embedder = embedder
        self.store = store
        self.registry = registry

    def ingest_file(self, file_path: str | Path) -> Optional[str]:
        """
        Parse, embed, store and register one file.

        Returns:
            The new collection id, or None if the file contributed nothing
            (parse / embedding / store / registry failure, or no text).
        """
        path = Path(file_path)
        file_name = path.name
        source = source_label(file_name)
        collection_name = generate_collection_name(collection_prefix(file_name))

        logger.info(f"[Ingest] Processing file: {file_name}")
        logger.info(f"[Ingest] Creating collection: {collection_name}")

        created = False
        try:
            chunks = self.parser.load_chunks(path)
            logger.info(f"[Ingest] Extracted {len(chunks)} chunks from {file_name}")

            self.store.create_collection(collection_name)
            created = True
            stored = self._store_chunks(collection_name, file_name, source, chunks)

            if stored == 0:
                logger.warning(f"[Ingest] {file_name} produced no non-empty chunks - not registered")
                self._abandon(collection_name)
                return None

            self.registry.append(collection_name, source)
        except DocQAError as exc:
            logger.error(f"[Ingest] Error processing file {path}: {exc}")
            if created:
                self._abandon(collection_name)
            return None
        except Exception as exc:
            logger.exception(f"[Ingest] Unexpected error processing file {path}: {exc}")
            if created:
                self._abandon(collection_name)
            return None

        logger.info(f"[Ingest] Successfully stored {stored} chunks from {file_name}")
        return collection_name

    def _store_chunks(
        self,
        collection_name: str,
        file_name: str,
        source: str,
        chunks: list[str],
    ) -> int:
        total = len(chunks)
        ids: list[str] = []
        texts: list[str] = []
        embeddings: list[list[float]] = []
        metadatas: list[dict] = []

        prev_index: Optional[int] = None
        prev_text = ""

        for i, text in enumerate(chunks):
            if not text or not text.strip():
                logger.debug(f"[Ingest] Skipping empty chunk {i + 1} from {file_name}")
                continue

            logger.debug(f"[Ingest] Creating embedding for chunk {i + 1}/{total} from {file_name}")
            embedding = self.embedder.embed_text(text)

            overlap = significant_overlap(prev_text, text) if prev_index is not None else ""

            metadata = ChunkMetadata(
                chunk_index=i,
                file_name=file_name,
                total_chunks_in_file=total,
                word_count=len(text.split()),
                previous_chunk=chunk_id(i - 1) if i > 0 else "",
                next_chunk=chunk_id(i + 1) if i < total - 1 else "",
                has_overlap=bool(overlap),
                overlap_with=chunk_id(prev_index) if overlap else "",
                overlap_length=len(overlap),
                source=source,
            )

            ids.append(chunk_id(i))
            texts.append(text)
            embeddings.append(embedding)
            metadatas.append(metadata.to_store())

            prev_index, prev_text = i, text

        if ids:
            logger.info(f"[Ingest] Storing {len(ids)} chunks in {collection_name}...")
            self.store.add(collection_name, ids, texts, embeddings, metadatas)
        return len(ids)

    def _abandon(self, collection_name: str) -> None:
        """Best-effort removal of an unregistered, empty collection."""
        try:
            self.store.delete_collection(collection_name)
        except VectorStoreError as exc:
            logger.warning(f"[Ingest] Left empty collection {collection_name} in place: {exc}")
