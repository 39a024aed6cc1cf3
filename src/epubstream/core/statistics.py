"""Running word and character totals across a chapter stream."""

from epubstream.models.book import StatisticsSnapshot


class StatisticsAggregator:
    """Purely additive counters.

    Only the component delivering chapters in spine order updates an
    aggregator, so updates are serialized without a lock.
    """

    def __init__(self) -> None:
        self._words = 0
        self._chars = 0
        self._completed = 0
        self._failed = 0

    def update(self, chapter_word_count: int, chapter_char_count: int) -> None:
        """Add one successfully parsed chapter."""
        if chapter_word_count < 0 or chapter_char_count < 0:
            raise ValueError("Chapter counts cannot be negative")
        self._words += chapter_word_count
        self._chars += chapter_char_count
        self._completed += 1

    def record_failure(self) -> None:
        """Note a chapter that failed; it contributes no words or characters."""
        self._failed += 1

    def snapshot(self) -> StatisticsSnapshot:
        return StatisticsSnapshot(
            total_words=self._words,
            total_chars=self._chars,
            chapters_completed=self._completed,
            chapters_failed=self._failed,
        )

    @property
    def total_words(self) -> int:
        return self._words

    @property
    def total_chars(self) -> int:
        return self._chars
