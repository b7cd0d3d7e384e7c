"""Command line interface for docanswer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docanswer.config import AppConfig
from docanswer.services import Services, build_services

console = Console()
app = typer.Typer(help="docanswer - grounded answers from uploaded documents")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(db: Path | None, **overrides: int | None) -> AppConfig:
    config = AppConfig.from_env()
    if db is not None:
        config.db_path = db
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    return config


def _open_existing(config: AppConfig) -> Services:
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")
    return build_services(config, base_dir=Path.cwd())


@app.command()
def ingest(
    inputs: List[Path] = typer.Argument(..., help="Files or folders to ingest.", resolve_path=True),
    project: Optional[str] = typer.Option(None, "--project", help="Project to attach documents to"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    chunk_chars: Optional[int] = typer.Option(None, help="Chunk size in characters"),
    overlap: Optional[int] = typer.Option(None, help="Chunk overlap in characters"),
    dimension: Optional[int] = typer.Option(None, help="Embedding dimension"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Parse, chunk and embed documents into the store."""
    _setup_logging(verbose)
    config = _load_config(
        db, chunk_chars=chunk_chars, overlap=overlap, embedding_dimension=dimension
    )
    services = build_services(config, base_dir=Path.cwd())
    try:
        console.print(f"Ingesting into [bold]{config.resolve_db_path(Path.cwd())}[/bold]...")
        stats = services.ingestor.ingest_paths(inputs, project_id=project)
    finally:
        services.close()

    if not stats.processed_files:
        console.print("[yellow]No ingestible files found.[/yellow]")
        return

    for result in stats.results:
        if result.parse_warning:
            console.print(
                f"[yellow]{escape(result.filename)}: {escape(result.parse_warning)}[/yellow]"
            )
    console.print(
        f"Ingested: {stats.ingested}, chunks: {stats.chunks}, "
        f"warnings: {stats.warnings}, failed: {stats.failed}"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    project: Optional[str] = typer.Option(None, "--project", help="Restrict to a project"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    limit: int = typer.Option(5, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank stored chunks against a query."""
    _setup_logging(verbose)
    if not query.strip():
        raise typer.BadParameter("Empty query")
    services = _open_existing(_load_config(db))
    try:
        results = services.searcher.search(query, project_id=project, limit=limit)
    finally:
        services.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Span")
    table.add_column("Snippet")
    for result in results:
        table.add_row(
            f"{result.score:.4f}",
            escape(result.filename),
            f"{result.span.start}-{result.span.end}",
            escape(result.snippet[:180]),
        )
    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    project: Optional[str] = typer.Option(None, "--project", help="Restrict to a project"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    top_k: int = typer.Option(5, help="Number of chunks to cite"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Answer a question from stored documents."""
    _setup_logging(verbose)
    if not question.strip():
        raise typer.BadParameter("Empty question")
    services = _open_existing(_load_config(db))
    try:
        response = services.answers.answer(question, project_id=project, top_k=top_k)
    finally:
        services.close()

    if response.status == "not_found":
        console.print(f"[yellow]{response.answer}[/yellow]")
        return

    console.print(response.answer, markup=False)
    for citation in response.citations:
        console.print(
            f"  - {escape(citation.filename)} \\[{citation.span.start}:{citation.span.end}] "
            f"({citation.chunk_id})"
        )


@app.command()
def documents(
    project: Optional[str] = typer.Option(None, "--project", help="Restrict to a project"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List stored documents."""
    services = _open_existing(_load_config(db))
    try:
        docs = services.store.list_documents(project)
    finally:
        services.close()

    if not docs:
        console.print("[yellow]No documents stored.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Filename")
    table.add_column("Kind")
    table.add_column("Chunks")
    table.add_column("Warning")
    for doc in docs:
        table.add_row(
            doc.document_id,
            escape(doc.filename),
            doc.kind,
            str(doc.chunk_count),
            escape(doc.parse_error or ""),
        )
    console.print(table)


@app.command()
def delete(
    document_id: str = typer.Argument(..., help="Document to delete"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Delete a document and its chunks."""
    services = _open_existing(_load_config(db))
    try:
        deleted = services.store.delete_document(document_id)
    finally:
        services.close()

    if not deleted:
        console.print(f"[yellow]Document {document_id} not found.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"Deleted {document_id}.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from docanswer.web.app import create_app

    config = _load_config(db)
    console.print(
        f"Starting API on http://{host}:{port} (database: {config.resolve_db_path(Path.cwd())})"
    )
    uvicorn.run(create_app(config), host=host, port=port, reload=False, log_level="info")
