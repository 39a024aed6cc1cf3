"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from epubstream.commands.extract import execute_extract
from epubstream.config import ExtractorConfig
from epubstream.core.epub_parser import EpubParser
from epubstream.errors import EpubError

app = typer.Typer(
    name="epubstream",
    help="Extract metadata and chapter text from EPUB files.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

BookPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]

Workers = Annotated[
    int,
    typer.Option(
        "--workers",
        "-w",
        help="Parse chapters on N threads (output order is unchanged)",
        min=1,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Extract metadata and chapter text from EPUB files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def info(book_path: BookPath) -> None:
    """Display book metadata and content totals."""
    try:
        with EpubParser(book_path) as parser:
            metadata = parser.get_metadata()
            totals = parser.statistics()
            spine_length = len(parser.package.spine)
    except EpubError as e:
        console.print(f"[red]Error reading file: {escape(str(e))}[/]")
        raise typer.Exit(1)

    info_lines = [
        f"[bold]{escape(metadata.title or 'Untitled')}[/]",
        "",
        f"[dim]Author(s):[/] {escape(', '.join(metadata.authors) or 'Unknown')}",
        f"[dim]Language:[/] {escape(metadata.language or 'Unknown')}",
        f"[dim]Identifier:[/] {escape(metadata.identifier or 'Unknown')}",
        f"[dim]Date:[/] {escape(metadata.date or 'Unknown')}",
        f"[dim]Publisher:[/] {escape(metadata.publisher or 'Unknown')}",
        "",
        f"[dim]Chapters:[/] {spine_length}",
        f"[dim]Words:[/] {totals.total_words:,}",
        f"[dim]Characters:[/] {totals.total_chars:,}",
    ]
    if totals.chapters_failed:
        info_lines.append(f"[yellow]{totals.chapters_failed} chapter(s) could not be read[/]")

    console.print()
    console.print(
        Panel(
            "\n".join(info_lines),
            title="Book Information",
            border_style="green",
        )
    )
    console.print()


@app.command()
def chapters(book_path: BookPath, workers: Workers = 1) -> None:
    """List chapters in spine order with word and character counts."""
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("File", style="white")
    table.add_column("Words", justify="right", style="green")
    table.add_column("Chars", justify="right", style="green")
    table.add_column("Status")

    try:
        with EpubParser(book_path, ExtractorConfig(workers=workers)) as parser:
            for chapter in parser.iterate_chapters():
                status = (
                    "[green]ok[/]"
                    if chapter.ok
                    else f"[red]{chapter.error.stage} failed[/]"
                )
                table.add_row(
                    str(chapter.spine_index + 1),
                    escape(chapter.path),
                    f"{chapter.word_count:,}",
                    f"{chapter.char_count:,}",
                    status,
                )
            totals = parser.statistics()
    except EpubError as e:
        console.print(f"[red]Error reading file: {escape(str(e))}[/]")
        raise typer.Exit(1)

    console.print()
    console.print(table)
    console.print(
        f"[dim]Total:[/] {totals.total_words:,} words, {totals.total_chars:,} characters"
    )


@app.command()
def extract(
    book_path: BookPath,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: {book_name}_chapters/)",
        ),
    ] = None,
    tree: Annotated[
        bool,
        typer.Option("--tree", help="Include the parsed markup tree of each chapter"),
    ] = False,
    workers: Workers = 1,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Extract every chapter to JSON files plus a manifest."""
    try:
        execute_extract(
            book_path=book_path,
            output_dir=output_dir,
            tree=tree,
            workers=workers,
            quiet=quiet,
            console=console,
        )
    except EpubError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
