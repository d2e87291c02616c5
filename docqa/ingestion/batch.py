"""
Batch Ingestor - full corpus
------------------------------
Replaces the whole corpus in one run:

  1. Reset the collection registry (failure aborts the run)
  2. Discover every regular file under the root, recursively
  3. Ingest files one at a time through IngestionPipeline
  4. Write an ingestion manifest (data/ingest_manifest.json)

Files are processed sequentially to bound load on the embedding API. A file
that fails is logged and skipped; a partial corpus is an acceptable outcome.

Re-ingestion is a maintenance operation: do not serve search traffic while
it runs, since the registry is cleared before new collections are recorded.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from docqa.ingestion.pipeline import IngestionPipeline
from docqa.registry.registry import CollectionRegistry
from docqa.schemas import IngestReport
from docqa.utils.helpers import save_json

console = Console()


def discover_files(root: str | Path) -> list[Path]:
    """All regular files below root, in a stable (sorted) order."""
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Documents directory not found: {root}")
    return sorted(p for p in root.rglob("*") if p.is_file())


class BatchIngestor:
    """
    Usage:
        ingestor = BatchIngestor(pipeline, registry, manifest_path="data/ingest_manifest.json")
        collection_ids = ingestor.ingest_directory("doc")
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        registry: CollectionRegistry,
        manifest_path: Optional[str | Path] = None,
        show_progress: bool = True,
    ) -> None:
        self.pipeline = pipeline
        self.registry = registry
        self.manifest_path = Path(manifest_path) if manifest_path else None
        self.show_progress = show_progress
        self.last_report: Optional[IngestReport] = None

    @classmethod
    def from_config(cls, cfg: dict, show_progress: bool = True) -> "BatchIngestor":
        from docqa.embedding.embedder import Embedder
        from docqa.parsing.parser import DocumentParser
        from docqa.registry.registry import FileCollectionRegistry
        from docqa.store.chroma_store import ChromaVectorStore

        parse_cfg = cfg["parsing"]
        emb_cfg = cfg["embedding"]
        registry = FileCollectionRegistry(cfg["paths"]["registry_file"])
        pipeline = IngestionPipeline(
            parser=DocumentParser(
                chunk_size=parse_cfg["chunk_size"],
                chunk_overlap=parse_cfg["chunk_overlap"],
            ),
            embedder=Embedder(model=emb_cfg["model"], batch_size=emb_cfg["batch_size"]),
            store=ChromaVectorStore.from_config(cfg),
            registry=registry,
        )
        return cls(
            pipeline,
            registry,
            manifest_path=cfg["paths"].get("manifest_file"),
            show_progress=show_progress,
        )

    def ingest_directory(self, root: str | Path) -> list[str]:
        """
        Reset the registry and ingest every file below root.

        Returns:
            Ids of the collections created, in processing order.

        Raises:
            FileNotFoundError: root is not a directory.
            RegistryError: the registry could not be reset.
        """
        files = discover_files(root)
        report = IngestReport(root=str(root), files_found=len(files))

        self.registry.reset()
        logger.info(f"[Batch] Registry reset | {len(files)} files found under {root}")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
            disable=not self.show_progress,
        ) as progress:
            task = progress.add_task("[cyan]Ingesting documents...[/cyan]", total=len(files))
            for file_path in files:
                collection_id = self.pipeline.ingest_file(file_path)
                if collection_id:
                    report.collections.append(collection_id)
                else:
                    report.failed_files.append(str(file_path))
                progress.advance(task)

        report.completed_at = datetime.utcnow()
        self.last_report = report

        logger.info(
            f"[Batch] Ingestion complete | {len(report.collections)} collections created, "
            f"{len(report.failed_files)} files skipped"
        )
        if self.manifest_path is not None:
            save_json(report.model_dump(mode="json"), self.manifest_path)
            logger.info(f"[Batch] Manifest written -> {self.manifest_path}")

        return list(report.collections)
