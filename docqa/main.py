"""
docqa - CLI Entry Point
------------------------
Typer commands for building and querying the document corpus.

Usage:
    python -m docqa.main ingest                  # Re-ingest every file under ./doc
    python -m docqa.main ingest --docs-dir docs  # ... or another root
    python -m docqa.main ask                     # Interactive Q&A
    python -m docqa.main ask -q "..." --json     # Single-shot query
    python -m docqa.main collections             # List registered collections
    python -m docqa.main status                  # Show the last ingestion manifest

The API server is started separately:
    uvicorn app.server:app --port 3001
"""
from __future__ import annotations

import sys

# Windows cp1252 terminal fix
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import json
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from docqa.config import load_config
from docqa.errors import RegistryError
from docqa.utils.helpers import load_json, truncate_text
from docqa.utils.logger import setup_from_config

app = typer.Typer(
    name="docqa",
    help="Document Q&A - ingest a document corpus and answer questions about it",
    add_completion=False,
)
console = Console()


def _init(config: Optional[str]) -> dict:
    cfg = load_config(config)
    setup_from_config(cfg)
    return cfg


# --- Commands -----------------------------------------------------------------

@app.command()
def ingest(
    docs_dir: Optional[str] = typer.Option(
        None, "--docs-dir", "-d", help="Root directory of documents (default: paths.docs_dir)"
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
) -> None:
    """
    Rebuild the corpus: reset the registry and ingest every file.

    \b
    Steps per file:
      1. Parse into ordered chunks (PDF / text)
      2. Embed each non-empty chunk (OpenAI text-embedding-3-small)
      3. Store chunks + overlap metadata in a new Chroma collection
      4. Record the collection in the registry

    Do not run while the API server is answering questions.
    """
    cfg = _init(config)
    root = docs_dir or cfg["paths"]["docs_dir"]

    from docqa.ingestion.batch import BatchIngestor

    console.print()
    console.print(
        Panel(
            f"[bold cyan]{cfg['project']['name']}[/bold cyan]\n"
            f"[white]Ingesting documents from {root}[/white]",
            box=box.DOUBLE_EDGE,
            expand=False,
        )
    )

    ingestor = BatchIngestor.from_config(cfg)
    try:
        collection_ids = ingestor.ingest_directory(root)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    except RegistryError as exc:
        console.print(f"[red]Ingestion aborted: {exc}[/red]")
        raise typer.Exit(1)

    report = ingestor.last_report
    console.print(
        Panel(
            "[bold green]Ingestion Complete[/bold green]\n\n"
            f"  Files found  : {report.files_found:,}\n"
            f"  Collections  : {len(collection_ids):,}\n"
            f"  Skipped      : {len(report.failed_files):,}",
            box=box.DOUBLE_EDGE,
            border_style="green",
            expand=False,
        )
    )
    for failed in report.failed_files:
        console.print(f"  [yellow]skipped[/yellow] {failed}")


@app.command()
def ask(
    query: Optional[str] = typer.Option(
        None, "--query", "-q", help="Single question (omit for interactive loop)"
    ),
    top_k: Optional[int] = typer.Option(
        None, "--top-k", help="Matches per collection (default: search.top_k)"
    ),
    json_out: bool = typer.Option(
        False, "--json", help="Print result as JSON (single-query mode only)"
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
) -> None:
    """Answer questions from the ingested documents."""
    cfg = _init(config)
    if top_k is not None:
        cfg["search"]["top_k"] = top_k

    from docqa.serving.pipeline import QAPipeline

    with console.status("[cyan]Connecting to vector store...[/cyan]"):
        pipeline = QAPipeline.from_config(cfg)

    # --- Single-shot mode -----------------------------------------------------
    if query is not None:
        if not query.strip():
            console.print("[red]Question is required.[/red]")
            raise typer.Exit(2)
        result = pipeline.query(query)
        if json_out:
            console.print_json(json.dumps(result.to_dict(), default=str))
        else:
            _print_result(result)
        return

    # --- Interactive loop -----------------------------------------------------
    console.print("[bold]Ask anything about the documents.[/bold]")
    console.print("[dim]Type 'exit', 'quit', or press Ctrl+C to quit.[/dim]\n")

    while True:
        try:
            raw = console.input("[bold cyan]You[/bold cyan] > ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print("\n[dim]Goodbye.[/dim]")
            break

        if not raw:
            continue
        if raw.lower() in {"exit", "quit", "q"}:
            console.print("[dim]Goodbye.[/dim]")
            break

        with console.status("[cyan]Thinking...[/cyan]"):
            result = pipeline.query(raw)
        _print_result(result)


def _print_result(result) -> None:
    """Render a QueryResult to the terminal using Rich."""
    console.print()
    console.print(
        Panel(
            Markdown(result.answer),
            title="[bold red]Error[/bold red]" if result.failed else "[bold green]Answer[/bold green]",
            border_style="red" if result.failed else "green",
            expand=True,
        )
    )

    if result.results:
        table = Table(
            "No.", "Source", "Chunk", "Passage", "Distance",
            box=box.SIMPLE,
            show_header=True,
            header_style="bold dim",
        )
        for i, hit in enumerate(result.results, start=1):
            table.add_row(
                str(i),
                hit.source,
                str(hit.metadata.get("chunkIndex", "")),
                truncate_text(" ".join(hit.document.split()), 60),
                f"{hit.distance:.4f}",
            )
        console.print(table)

    console.print(
        f"[dim]retrieve={result.retrieval_ms:.0f}ms  "
        f"generate={result.generation_ms:.0f}ms  "
        f"total={result.total_ms / 1000:.1f}s[/dim]\n"
    )


@app.command()
def collections(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
) -> None:
    """List every collection in the registry."""
    cfg = load_config(config)

    from docqa.registry.registry import FileCollectionRegistry

    records = FileCollectionRegistry(cfg["paths"]["registry_file"]).load_all()
    if not records:
        console.print("[yellow]Registry is empty.  Run: python -m docqa.main ingest[/yellow]")
        raise typer.Exit(1)

    table = Table("No.", "Collection", "Source", box=box.SIMPLE, header_style="bold dim")
    for i, record in enumerate(records, start=1):
        table.add_row(str(i), record.id, record.source)
    console.print(table)


@app.command()
def status(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
) -> None:
    """Show the manifest written by the last ingestion run."""
    cfg = load_config(config)
    path = Path(cfg["paths"]["manifest_file"])
    if not path.exists():
        console.print("[yellow]No ingestion manifest found.  Run: python -m docqa.main ingest[/yellow]")
        raise typer.Exit(1)

    state = load_json(path)
    console.print()
    console.print("[bold]Last Ingestion[/bold]")
    console.print(f"  Root        : {state.get('root')}")
    console.print(f"  Started     : {state.get('started_at')}")
    console.print(f"  Completed   : {state.get('completed_at')}")
    console.print(f"  Files found : {state.get('files_found')}")
    console.print(f"  Collections : [green]{state.get('collections_created')}[/green]")
    console.print(f"  Skipped     : [red]{len(state.get('failed_files', []))}[/red]")
    for failed in state.get("failed_files", []):
        console.print(f"    [dim]{failed}[/dim]")


# --- Entry Point --------------------------------------------------------------

if __name__ == "__main__":
    app()
