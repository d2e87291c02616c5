"""
Core Pydantic schemas shared by ingestion, retrieval and serving.

ChunkMetadata is stored verbatim next to every vector, so it serialises
with the camelCase keys the vector collections are queried back with.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


# --- Registry -----------------------------------------------------------------

class CollectionRecord(BaseModel):
    """One registered vector collection and the provenance label of its file."""

    id: str
    source: str


# --- Chunks -------------------------------------------------------------------

class ChunkMetadata(BaseModel):
    """
    Adjacency-aware metadata stored alongside each chunk embedding.

    previous_chunk / next_chunk always reference original extraction
    indices, even when the neighbouring chunk was empty and never stored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chunk_index: int
    file_name: str
    total_chunks_in_file: int
    word_count: int
    previous_chunk: str = ""
    next_chunk: str = ""
    has_overlap: bool = False
    overlap_with: str = ""
    overlap_length: int = 0
    source: str

    def to_store(self) -> dict[str, Any]:
        """Flat camelCase dict accepted by the vector store."""
        return self.model_dump(by_alias=True)


# --- Retrieval ----------------------------------------------------------------

class SearchResult(BaseModel):
    """A single hit from federated search, tagged with its collection."""

    document: str
    distance: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    source: str
    collection: str


# --- Ingestion ----------------------------------------------------------------

class IngestReport(BaseModel):
    """Summary of one full-corpus ingestion run, persisted as the manifest."""

    root: str
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    files_found: int = 0
    collections: list[str] = Field(default_factory=list)
    failed_files: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def collections_created(self) -> int:
        return len(self.collections)
