"""EPUB extraction facade."""

import logging
from typing import AsyncIterator, Iterator

from epubstream.config import ExtractorConfig
from epubstream.core.archive import ArchiveSource, EpubArchive
from epubstream.core.container import ContainerResolver
from epubstream.core.pipeline import ChapterPipeline
from epubstream.models.book import ParsedEpub, StatisticsSnapshot
from epubstream.models.chapter import Chapter, ParseMode
from epubstream.models.epub import PackageDocument, PackageMetadata

log = logging.getLogger(__name__)


class EpubParser:
    """Open an EPUB and extract metadata and chapters from it.

    The container and package document are resolved when the parser is
    created, so a broken archive fails here rather than mid-stream.
    """

    def __init__(self, source: ArchiveSource, config: ExtractorConfig | None = None):
        self.config = config or ExtractorConfig()
        self.archive = EpubArchive.open(source, max_entry_size=self.config.max_entry_size)
        try:
            self.package: PackageDocument = ContainerResolver(self.archive).resolve()
        except Exception:
            self.archive.close()
            raise
        self._totals: StatisticsSnapshot | None = None

    def get_metadata(self) -> PackageMetadata:
        return self.package.metadata

    def pipeline(self, mode: ParseMode | None = None) -> ChapterPipeline:
        config = self.config
        if mode is not None and mode is not config.mode:
            config = config.model_copy(update={"mode": mode})
        return ChapterPipeline(self.archive, self.package, config=config)

    def iterate_chapters(self, mode: ParseMode | None = None) -> Iterator[Chapter]:
        """Stream chapters in spine order.

        Totals are remembered once the stream has been fully consumed.
        """
        pipeline = self.pipeline(mode)
        yield from pipeline.stream()
        self._totals = pipeline.statistics.snapshot()

    async def aiterate_chapters(
        self, mode: ParseMode | None = None
    ) -> AsyncIterator[Chapter]:
        pipeline = self.pipeline(mode)
        async for chapter in pipeline.astream():
            yield chapter
        self._totals = pipeline.statistics.snapshot()

    def statistics(self) -> StatisticsSnapshot:
        """Whole-book totals, streaming the book in text mode if needed."""
        if self._totals is None:
            log.debug("No completed stream yet, running a text-only pass")
            pipeline = self.pipeline(ParseMode.TEXT)
            for _ in pipeline.stream():
                pass
            self._totals = pipeline.statistics.snapshot()
        return self._totals

    def get_total_word_count(self) -> int:
        return self.statistics().total_words

    def get_total_char_count(self) -> int:
        return self.statistics().total_chars

    def parse(self, mode: ParseMode | None = None) -> ParsedEpub:
        """Extract everything eagerly."""
        chapters = list(self.iterate_chapters(mode))
        return ParsedEpub(
            metadata=self.get_metadata(),
            chapters=chapters,
            spine_order=self.package.spine_order,
            statistics=self.statistics(),
        )

    def close(self) -> None:
        self.archive.close()

    def __enter__(self) -> "EpubParser":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# =============================================================================
# Convenience functions
# =============================================================================


def extract_text_only(source: ArchiveSource) -> list[str]:
    """Return the text of every chapter in spine order."""
    with EpubParser(source) as parser:
        return [chapter.text for chapter in parser.iterate_chapters(ParseMode.TEXT)]


def extract_tree(source: ArchiveSource) -> list[Chapter]:
    """Return every chapter with both text and node tree."""
    with EpubParser(source) as parser:
        return list(parser.iterate_chapters(ParseMode.TREE))


def get_metadata(source: ArchiveSource) -> PackageMetadata:
    with EpubParser(source) as parser:
        return parser.get_metadata()
