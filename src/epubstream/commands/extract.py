"""Extract command implementation."""

import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress

from epubstream.config import ExtractorConfig
from epubstream.core.epub_parser import EpubParser
from epubstream.core.output_writer import OutputWriter
from epubstream.models.chapter import ParseMode
from epubstream.models.output import ChapterMetadata


def get_default_output_dir(book_path: Path) -> Path:
    """Get default output directory based on book filename."""
    stem = book_path.stem
    # Clean up the filename for directory name
    clean_stem = re.sub(r"[^\w\s-]", "", stem).strip()
    clean_stem = re.sub(r"[-\s]+", "_", clean_stem)
    return book_path.parent / f"{clean_stem}_chapters"


def execute_extract(
    book_path: Path,
    output_dir: Path | None,
    tree: bool,
    workers: int,
    quiet: bool,
    console: Console,
) -> Path:
    """Stream every chapter to JSON and write a manifest.

    Returns the output directory.
    """
    config = ExtractorConfig(
        mode=ParseMode.TREE if tree else ParseMode.TEXT,
        workers=workers,
    )
    final_output_dir = output_dir or get_default_output_dir(book_path)

    with EpubParser(book_path, config) as parser:
        metadata = parser.get_metadata()
        total = len(parser.package.spine)
        writer = OutputWriter(final_output_dir, book_path)
        chapter_metadata: list[ChapterMetadata] = []

        if not quiet:
            with Progress(console=console) as progress:
                task = progress.add_task("Extracting chapters...", total=total)
                for chapter in parser.iterate_chapters():
                    _, meta = writer.write_chapter(chapter)
                    chapter_metadata.append(meta)
                    progress.update(
                        task,
                        advance=1,
                        description=f"Extracting: {escape(chapter.path[-40:])}",
                    )
        else:
            for chapter in parser.iterate_chapters():
                _, meta = writer.write_chapter(chapter)
                chapter_metadata.append(meta)

        totals = parser.statistics()

    manifest_path = writer.write_manifest(metadata, chapter_metadata, totals)

    if not quiet:
        failed = totals.chapters_failed
        summary_lines = [
            f"[green]Extracted {totals.chapters_completed} of {total} chapter(s)[/]",
            "",
            f"[dim]Words:[/] {totals.total_words:,}",
            f"[dim]Characters:[/] {totals.total_chars:,}",
            f"[dim]Output directory:[/] {escape(str(final_output_dir))}",
            f"[dim]Manifest:[/] {manifest_path.name}",
        ]
        if failed:
            summary_lines.append(f"[yellow]{failed} chapter(s) failed, see manifest warnings[/]")

        console.print()
        console.print(
            Panel(
                "\n".join(summary_lines),
                title="Complete",
                border_style="yellow" if failed else "green",
            )
        )

    return final_output_dir
