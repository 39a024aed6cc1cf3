"""Stream chapters in spine order.

Three drivers share the same per-chapter work:

* ``stream()`` reads and parses one chapter at a time.
* ``stream()`` with ``workers > 1`` reads and parses ahead on a thread pool,
  holding at most ``lookahead`` chapters, and delivers them in spine order.
* ``astream()`` awaits only the entry read; parsing runs inline.

Chapter-level failures never end the stream. The failing position is
delivered as a Chapter carrying a ChapterFailure so positions stay aligned
with the spine.
"""

import asyncio
import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import AsyncIterator, Iterator, Literal

from epubstream.config import ExtractorConfig
from epubstream.core.archive import EpubArchive
from epubstream.core.markup import MarkupParser
from epubstream.core.statistics import StatisticsAggregator
from epubstream.errors import ChapterParseError, DecompressionError, EntryNotFoundError
from epubstream.models.chapter import Chapter, ChapterFailure
from epubstream.models.epub import ManifestEntry, PackageDocument

log = logging.getLogger(__name__)

# Errors scoped to a single spine position
READ_ERRORS = (EntryNotFoundError, DecompressionError)


class ChapterPipeline:
    """Drive archive reads and markup parsing over the spine."""

    def __init__(
        self,
        archive: EpubArchive,
        package: PackageDocument,
        *,
        config: ExtractorConfig | None = None,
        parser: MarkupParser | None = None,
    ):
        self.archive = archive
        self.package = package
        self.config = config or ExtractorConfig()
        self.parser = parser or MarkupParser(self.config.mode)
        self.statistics = StatisticsAggregator()

    def stream(self) -> Iterator[Chapter]:
        """Yield one Chapter per spine entry, in spine order.

        Every call starts over from the first spine entry with fresh totals.
        """
        self.statistics = StatisticsAggregator()
        entries = self.package.spine_entries()
        log.debug("Streaming %d chapters from %s", len(entries), self.archive.name)

        if self.config.workers > 1 and len(entries) > 1:
            yield from self._stream_parallel(entries)
            return

        for index, entry in enumerate(entries):
            yield self._deliver(self._produce(index, entry))

    async def astream(self) -> AsyncIterator[Chapter]:
        """Async variant of ``stream()``; entry reads run in a worker thread."""
        self.statistics = StatisticsAggregator()
        for index, entry in enumerate(self.package.spine_entries()):
            try:
                data = await asyncio.to_thread(self.archive.read_entry, entry.path)
            except READ_ERRORS as exc:
                chapter = self._failed(index, entry, "read", exc)
            else:
                chapter = self._build(index, entry, data)
            yield self._deliver(chapter)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _stream_parallel(self, entries: list[ManifestEntry]) -> Iterator[Chapter]:
        """Parse ahead on a thread pool, deliver strictly in spine order."""
        pending: deque[Future[Chapter]] = deque()
        position = 0

        with ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="epubstream"
        ) as pool:
            try:
                while position < len(entries) or pending:
                    while position < len(entries) and len(pending) < self.config.lookahead:
                        pending.append(pool.submit(self._produce, position, entries[position]))
                        position += 1
                    # Head of the queue is the next spine position
                    yield self._deliver(pending.popleft().result())
            finally:
                for future in pending:
                    future.cancel()

    def _produce(self, index: int, entry: ManifestEntry) -> Chapter:
        try:
            data = self.archive.read_entry(entry.path)
        except READ_ERRORS as exc:
            return self._failed(index, entry, "read", exc)
        return self._build(index, entry, data)

    def _build(self, index: int, entry: ManifestEntry, data: bytes) -> Chapter:
        try:
            result = self.parser.parse(data, path=entry.path)
        except ChapterParseError as exc:
            return self._failed(index, entry, "parse", exc)

        return Chapter(
            spine_index=index,
            idref=entry.id,
            path=entry.path,
            media_type=entry.media_type,
            text=result.text,
            tree=result.tree,
            word_count=result.word_count,
            char_count=result.char_count,
        )

    def _failed(
        self,
        index: int,
        entry: ManifestEntry,
        stage: Literal["read", "parse"],
        exc: Exception,
    ) -> Chapter:
        log.warning("Chapter %d (%s) failed to %s: %s", index, entry.path, stage, exc)
        return Chapter(
            spine_index=index,
            idref=entry.id,
            path=entry.path,
            media_type=entry.media_type,
            error=ChapterFailure(
                stage=stage, message=str(exc), error_type=type(exc).__name__
            ),
        )

    def _deliver(self, chapter: Chapter) -> Chapter:
        if chapter.ok:
            self.statistics.update(chapter.word_count, chapter.char_count)
        else:
            self.statistics.record_failure()
        return chapter
