"""CLI entry point — Typer app for ragingest commands.

Usage:
    ragingest ingest notes.md report.pdf --space team:shared --tags docs,q3
    ragingest chunk README.md --strategy markdown
    ragingest embed-repo ./my-repo --workers 8
    ragingest status
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="ragingest",
    help="Chunk documents and embed them for retrieval.",
    no_args_is_help=True,
)

console = Console()

_INGEST_PATHS = typer.Argument(..., help="Files to ingest")
_CHUNK_PATH = typer.Argument(..., help="File or repository directory to chunk")
_REPO_ROOT = typer.Argument(..., help="Repository root to walk")


@app.callback()
def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def ingest(
    paths: Annotated[list[Path], _INGEST_PATHS],
    space: str = typer.Option("team:shared", "--space", help="Target shared space"),
    scope: str = typer.Option("space", "--scope", help="Scope: local|space|global"),
    tags: str = typer.Option("", "--tags", help="Comma-separated tags"),
    ttl: float | None = typer.Option(None, "--ttl", help="TTL in seconds"),
    embedding_provider: str | None = typer.Option(
        None, "--embedding", "-e", help="Embedding provider (default from settings)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Ingest files, reporting failures per file."""
    from ragingest.config import load_settings
    from ragingest.documents.schemas import Scope
    from ragingest.embeddings.factory import provider_from_settings
    from ragingest.pipeline.ingest import Ingestor
    from ragingest.pipeline.schemas import IngestOptions
    from ragingest.storage.memory_writer import InMemoryWriter

    settings = load_settings()
    emb = provider_from_settings(settings.embedding, embedding_provider)
    ingestor = Ingestor.from_settings(settings, embedder=emb, writer=InMemoryWriter())
    options = IngestOptions(
        space=space,
        scope=Scope(scope),
        tags=[t.strip() for t in tags.split(",") if t.strip()],
        ttl=ttl,
    )
    report = ingestor.ingest_many(paths, options)

    if as_json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        table = Table(title="Ingestion Report")
        table.add_column("File", style="cyan")
        table.add_column("MIME")
        table.add_column("Bytes", justify="right")
        table.add_column("Chunks", justify="right")
        table.add_column("Error", style="red")
        for item in report.items:
            table.add_row(
                item.file, item.mime, str(item.size_bytes), str(item.chunk_count), item.error,
            )
        console.print(table)
        console.print(
            f"\n[bold green]Total chunks:[/] {report.total_chunks}  "
            f"[bold red]Failed:[/] {report.failed}",
        )

    if report.failed:
        raise typer.Exit(code=1)


@app.command()
def chunk(
    path: Annotated[Path, _CHUNK_PATH],
    strategy: str | None = typer.Option(
        None, "--strategy", "-s",
        help="Chunking strategy (default: by MIME, or code for directories)",
    ),
    max_tokens: int = typer.Option(0, "--max-tokens", help="Token budget (0 = default)"),
    preview: int = typer.Option(80, "--preview", help="Characters of content to show"),
) -> None:
    """Preview how a file or repository is chunked."""
    from ragingest.chunking.base import BaseChunker
    from ragingest.chunking.code_chunker import CodeChunker
    from ragingest.chunking.factory import get_chunker, strategy_for_mime
    from ragingest.documents.mime import detect_mime
    from ragingest.documents.schemas import ReaderWithName, Source
    from ragingest.errors import RagIngestError

    source = Source(name=path.name, uri=path.resolve().as_uri())
    try:
        if path.is_dir():
            chunker: BaseChunker = CodeChunker(root=path, max_file_tokens=max_tokens)
            chunks = chunker.chunk(ReaderWithName(), source)
        else:
            if not strategy:
                with open(path, "rb") as fh:
                    head = fh.read(512)
                strategy = strategy_for_mime(detect_mime(path.name, head))
            budgeted = strategy in ("text", "markdown")
            kwargs = {"max_tokens": max_tokens} if max_tokens and budgeted else {}
            chunker = get_chunker(strategy, **kwargs)
            if not isinstance(chunker, BaseChunker):
                console.print(f"[red]Strategy '{strategy}' works on extracted blocks, not files[/]")
                raise typer.Exit(code=2)
            with open(path, "rb") as fh:
                chunks = chunker.chunk(ReaderWithName(name=path.name, reader=fh), source)
    except RagIngestError as exc:
        console.print(f"[red]Chunking failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"{len(chunks)} chunks ({chunker.strategy_name()})")
    table.add_column("ID", style="cyan")
    table.add_column("Section / Path")
    table.add_column("Content")
    for c in chunks:
        where = c.metadata.get("section_heading") or c.metadata.get("path") or c.metadata.get("page", "")
        table.add_row(c.id, str(where), c.content[:preview].replace("\n", " "))
    console.print(table)


@app.command(name="embed-repo")
def embed_repo(
    root: Annotated[Path, _REPO_ROOT],
    source_name: str = typer.Option("repo", "--source", help="Logical source label"),
    workers: int = typer.Option(0, "--workers", "-w", help="Worker threads (0 = settings)"),
    timeout: float | None = typer.Option(None, "--timeout", help="Overall timeout in seconds"),
    embedding_provider: str | None = typer.Option(
        None, "--embedding", "-e", help="Embedding provider (default from settings)",
    ),
) -> None:
    """Chunk a repository and embed every chunk with PII redaction."""
    from ragingest.cancellation import CancelScope
    from ragingest.chunking.code_chunker import CodeChunker
    from ragingest.config import load_settings
    from ragingest.documents.schemas import ReaderWithName, Source
    from ragingest.embeddings.factory import provider_from_settings
    from ragingest.embeddings.metrics import InMemoryMetrics
    from ragingest.embeddings.pipeline import EmbeddingPipeline
    from ragingest.errors import CancellationError
    from ragingest.redaction import PIIRedactor

    settings = load_settings()
    chunker = CodeChunker(root=root, max_file_tokens=settings.chunking.code_max_tokens)
    chunks = chunker.chunk(ReaderWithName(), Source(name=source_name, uri=str(root)))
    console.print(f"Discovered [bold]{len(chunks)}[/] chunks")

    config = settings.pipeline.to_config()
    if workers > 0:
        config.workers = workers
    emb = provider_from_settings(settings.embedding, embedding_provider)
    metrics = InMemoryMetrics()
    pipeline = EmbeddingPipeline(emb, middlewares=[PIIRedactor()], config=config, metrics=metrics)

    with CancelScope(timeout=timeout) as scope:
        try:
            results = pipeline.process(chunks, scope)
        except CancellationError as exc:
            console.print(f"[red]Embedding aborted:[/] {exc}")
            raise typer.Exit(code=1) from exc

    failed = [r for r in results if not r.ok]
    for res in failed:
        console.print(f"[yellow]chunk {res.chunk.id} failed:[/] {res.error}")
    console.print(
        f"\n[bold green]Embedded {len(results) - len(failed)}/{len(results)} chunks[/] "
        f"[dim]({metrics.attempts} attempts)[/]",
    )


@app.command()
def status() -> None:
    """Show registered chunkers, providers and effective settings."""
    from ragingest import __version__
    from ragingest.chunking.factory import available_chunkers
    from ragingest.config import load_settings
    from ragingest.embeddings.factory import available_providers

    settings = load_settings()
    console.print(f"\n[bold green]ragingest[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_row("Chunkers", ", ".join(available_chunkers()))
    table.add_row("Embedding Providers", ", ".join(available_providers()))
    table.add_row("Ingest Strategy", settings.chunking.strategy)
    table.add_row(
        "Pipeline",
        f"workers={settings.pipeline.workers} batch={settings.pipeline.batch_size} "
        f"retries={settings.pipeline.retry.max_attempts}",
    )
    console.print(table)


if __name__ == "__main__":
    app()
