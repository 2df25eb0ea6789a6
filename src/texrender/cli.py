"""Click CLI for texrender — render LaTeX blocks and manage the SVG cache."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from texrender.errors.exceptions import TexRenderError

console = Console()
error_console = Console(stderr=True, soft_wrap=True)


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    level = logging.getLevelName(default_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _make_renderer(root: str, **overrides: object):
    from texrender.core import TexRender, load_settings

    try:
        settings = load_settings(start_dir=Path(root), **overrides)
        return TexRender(root, settings=settings)
    except TexRenderError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


def _document_id(renderer, document: str) -> str:
    try:
        return renderer.documents.document_id(Path(document))
    except ValueError:
        error_console.print(
            f"[red]Error:[/red] {document} is not inside the document root {renderer.root}"
        )
        sys.exit(1)


root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Document root; document ids are paths relative to it.",
)
verbose_option = click.option(
    "-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)."
)


@click.group()
@click.version_option(package_name="texrender")
def cli() -> None:
    """texrender — LaTeX blocks in markdown to cached SVG."""


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@root_option
@click.option("-o", "--output", type=click.Path(), help="Write an HTML page here.")
@click.option("--no-cache", is_flag=True, default=False, help="Disable caching.")
@click.option("--timeout", type=int, default=None, help="Renderer timeout in milliseconds.")
@verbose_option
def render(
    document: str,
    root: str,
    output: str | None,
    no_cache: bool,
    timeout: int | None,
    verbose: int,
) -> None:
    """Render every latex block of DOCUMENT."""
    renderer = _make_renderer(
        root,
        enable_cache=False if no_cache else None,
        timeout_ms=timeout,
    )
    _setup_logging(verbose, renderer.settings.log_level)
    document_id = _document_id(renderer, document)

    async def _run():
        try:
            return await renderer.render_document(document_id)
        finally:
            await renderer.close()

    try:
        blocks = asyncio.run(_run())
    except TexRenderError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    fragments = [b.to_html() for b in blocks]
    if output:
        from texrender.render.template import render_page

        Path(output).write_text(render_page(document_id, fragments), encoding="utf-8")
        console.print(f"[green]Written to {output}[/green]")
    else:
        for fragment in fragments:
            console.print(fragment, markup=False, highlight=False, soft_wrap=True)

    failed = [b for b in blocks if not b.ok]
    if verbose >= 1:
        cached = sum(1 for b in blocks if b.cached)
        error_console.print(
            f"{len(blocks)} block(s): {cached} cached, {len(failed)} failed"
        )
    if failed:
        for block in failed:
            error_console.print(f"[red]Render failed:[/red] {block.content_hash[:12]}")
        sys.exit(1)


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@root_option
def blocks(document: str, root: str) -> None:
    """List the latex blocks of DOCUMENT with their content hashes."""
    from texrender.cache.keys import hash_source
    from texrender.documents.scanner import extract_source_blocks

    renderer = _make_renderer(root)
    document_id = _document_id(renderer, document)
    text = renderer.documents.read(document_id)

    table = Table(title=f"Latex blocks in {document_id}", show_header=True)
    table.add_column("Lines", style="cyan")
    table.add_column("Hash")
    table.add_column("Cached")

    renderer.start()
    for block in extract_source_blocks(document_id, text, renderer.documents.blocks(document_id)):
        content_hash = hash_source(block.source)
        cached = renderer.store.initialized and renderer.store.lookup(content_hash) is not None
        table.add_row(
            f"{block.start_line + 1}-{block.end_line + 1}",
            content_hash,
            "yes" if cached else "no",
        )
    console.print(table)
    asyncio.run(renderer.close())


@cli.command()
@root_option
@verbose_option
def sweep(root: str, verbose: int) -> None:
    """Drop links to deleted documents and reconcile the rest."""
    renderer = _make_renderer(root)
    _setup_logging(verbose, renderer.settings.log_level)

    async def _run():
        try:
            return await renderer.sweep()
        finally:
            await renderer.close()

    report = asyncio.run(_run())

    table = Table(title="Sweep", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Documents checked", str(report.documents_checked))
    table.add_row("Documents missing", str(len(report.documents_missing)))
    table.add_row("Documents unreadable", str(len(report.documents_unreadable)))
    table.add_row("Links dropped", str(report.links_dropped))
    table.add_row("Entries removed", str(report.entries_removed))
    console.print(table)


@cli.command("config")
@root_option
def show_config(root: str) -> None:
    """Show the resolved settings."""
    from texrender.core import load_settings

    try:
        settings = load_settings(start_dir=Path(root))
    except TexRenderError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
@root_option
def cache_stats(root: str) -> None:
    """Show cache statistics."""
    renderer = _make_renderer(root)
    renderer.start()

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    stats = renderer.stats()
    table.add_row("Folder", str(renderer.cache_folder))
    table.add_row("Entries", str(stats.entries))
    table.add_row("Documents", str(stats.owners))
    table.add_row("Size (MB)", f"{stats.size_mb:.2f}")

    console.print(table)
    asyncio.run(renderer.close())


@cache.command("clear")
@root_option
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(root: str) -> None:
    """Delete all cached artifacts and empty the index."""
    renderer = _make_renderer(root)

    async def _run() -> None:
        try:
            await renderer.clear_cache()
        finally:
            await renderer.close()

    asyncio.run(_run())
    console.print("[green]Cache cleared.[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
