"""Write streamed chapters to an output directory as JSON."""

from datetime import datetime
from pathlib import Path

from epubstream.models.book import StatisticsSnapshot
from epubstream.models.chapter import Chapter
from epubstream.models.epub import PackageMetadata
from epubstream.models.output import BookOutput, ChapterMetadata, ChapterOutput


class OutputWriter:
    """Write parsed chapters to output directory."""

    def __init__(self, output_dir: Path, source_path: Path | str):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
            source_path: Path of the EPUB the chapters came from
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_chapter(self, chapter: Chapter) -> tuple[Path, ChapterMetadata]:
        """Write single chapter to JSON file."""
        metadata = ChapterMetadata(
            spine_index=chapter.spine_index,
            idref=chapter.idref,
            source_file=chapter.path,
            source_path=str(self.source_path),
            extracted_at=datetime.now(),
            word_count=chapter.word_count,
            character_count=chapter.char_count,
            error=chapter.error,
        )

        output = ChapterOutput(
            metadata=metadata,
            content=chapter.text,
            tree=chapter.tree,
        )

        filename = f"chapter_{chapter.spine_index + 1:03d}.json"
        filepath = self.output_dir / filename
        filepath.write_text(output.model_dump_json(indent=2), encoding="utf-8")

        return filepath, metadata

    def write_manifest(
        self,
        metadata: PackageMetadata,
        chapter_metadata: list[ChapterMetadata],
        statistics: StatisticsSnapshot,
    ) -> Path:
        """Write book manifest file."""
        warnings = [
            f"Chapter {meta.spine_index + 1} ({meta.source_file}): {meta.error.message}"
            for meta in chapter_metadata
            if meta.error is not None
        ]
        manifest = BookOutput(
            book_title=metadata.title,
            authors=metadata.authors,
            metadata=metadata,
            total_chapters=len(chapter_metadata),
            output_directory=str(self.output_dir),
            created_at=datetime.now(),
            chapters=chapter_metadata,
            statistics=statistics,
            warnings=warnings,
        )

        filepath = self.output_dir / "manifest.json"
        filepath.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        return filepath
