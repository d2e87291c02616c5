"""
Chroma Vector Store
--------------------
Thin adapter over a ChromaDB client holding one collection per ingested
document. Embeddings are always supplied by the caller, so collections are
created without a Chroma embedding function.

Every client error is re-raised as VectorStoreError so ingestion and
federated search can scope failures to one file / one collection.

Client selection:
  - host set        -> chromadb.HttpClient (a running Chroma server)
  - host null/empty -> chromadb.PersistentClient at persist_dir
"""
from __future__ import annotations

from typing import Any, Optional

import chromadb
from loguru import logger

from docqa.errors import VectorStoreError

DISTANCE_SPACES = {"l2", "cosine", "ip"}


class ChromaVectorStore:
    """Named-collection create / add / query / delete over ChromaDB."""

    def __init__(self, client: Any, distance: str = "l2") -> None:
        if distance not in DISTANCE_SPACES:
            raise ValueError(f"Unknown distance space '{distance}'. Allowed: {sorted(DISTANCE_SPACES)}")
        self._client = client
        self.distance = distance

    @classmethod
    def from_config(cls, cfg: dict) -> "ChromaVectorStore":
        chroma_cfg = cfg.get("chroma", {})
        host: Optional[str] = chroma_cfg.get("host")
        if host:
            port = int(chroma_cfg.get("port", 8000))
            client = chromadb.HttpClient(host=host, port=port)
            logger.info(f"[ChromaStore] Using Chroma server at {host}:{port}")
        else:
            persist_dir = chroma_cfg.get("persist_dir", "data/chroma")
            client = chromadb.PersistentClient(path=str(persist_dir))
            logger.info(f"[ChromaStore] Using embedded Chroma at {persist_dir}")
        return cls(client, distance=chroma_cfg.get("distance", "l2"))

    def heartbeat(self) -> bool:
        """True if the Chroma backend answers."""
        try:
            self._client.heartbeat()
        except Exception as exc:
            logger.warning(f"[ChromaStore] Heartbeat failed: {exc}")
            return False
        return True

    def create_collection(self, name: str) -> None:
        try:
            self._client.create_collection(
                name=name,
                embedding_function=None,
                metadata={"hnsw:space": self.distance},
            )
        except Exception as exc:
            raise VectorStoreError(f"Could not create collection {name}: {exc}") from exc
        logger.debug(f"[ChromaStore] Created collection {name} (space={self.distance})")

    def add(
        self,
        name: str,
        ids: list[str],
        documents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> None:
        """Write one batch of parallel id / text / vector / metadata lists."""
        if not (len(ids) == len(documents) == len(embeddings) == len(metadatas)):
            raise ValueError(
                f"Mismatched batch for {name}: {len(ids)} ids, {len(documents)} documents, "
                f"{len(embeddings)} embeddings, {len(metadatas)} metadatas"
            )
        try:
            collection = self._client.get_collection(name=name, embedding_function=None)
            collection.add(
                ids=ids,
                documents=documents,
                embeddings=embeddings,
                metadatas=metadatas,
            )
        except Exception as exc:
            raise VectorStoreError(f"Could not add {len(ids)} chunks to {name}: {exc}") from exc

    def query(self, name: str, embedding: list[float], top_k: int) -> list[dict]:
        """
        Nearest-neighbour query against one collection.

        Returns:
            List of {"document", "distance", "metadata"} dicts, nearest first.
        """
        try:
            collection = self._client.get_collection(name=name, embedding_function=None)
            results = collection.query(
                query_embeddings=[embedding],
                n_results=top_k,
                include=["documents", "distances", "metadatas"],
            )
        except Exception as exc:
            raise VectorStoreError(f"Query against {name} failed: {exc}") from exc

        documents = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        return [
            {
                "document": doc,
                "distance": float(distances[i]),
                "metadata": dict(metadatas[i] or {}),
            }
            for i, doc in enumerate(documents)
        ]

    def delete_collection(self, name: str) -> None:
        try:
            self._client.delete_collection(name=name)
        except Exception as exc:
            raise VectorStoreError(f"Could not delete collection {name}: {exc}") from exc
        logger.debug(f"[ChromaStore] Deleted collection {name}")
