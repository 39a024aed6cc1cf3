import pytest

from epubstream.core.statistics import StatisticsAggregator
from epubstream.models.book import StatisticsSnapshot


def test_starts_at_zero():
    assert StatisticsAggregator().snapshot() == StatisticsSnapshot()


def test_updates_accumulate():
    stats = StatisticsAggregator()
    stats.update(5, 27)
    stats.update(0, 0)
    stats.update(3, 12)
    assert stats.total_words == 8
    assert stats.total_chars == 39
    snapshot = stats.snapshot()
    assert snapshot.chapters_completed == 3
    assert snapshot.chapters_failed == 0


def test_failures_contribute_nothing():
    stats = StatisticsAggregator()
    stats.update(4, 10)
    stats.record_failure()
    snapshot = stats.snapshot()
    assert snapshot.total_words == 4
    assert snapshot.total_chars == 10
    assert snapshot.chapters_failed == 1


def test_snapshot_is_detached():
    stats = StatisticsAggregator()
    before = stats.snapshot()
    stats.update(1, 1)
    assert before.total_words == 0
    assert stats.snapshot().total_words == 1


@pytest.mark.parametrize("words, chars", [(-1, 0), (0, -1)])
def test_negative_counts_rejected(words: int, chars: int):
    stats = StatisticsAggregator()
    with pytest.raises(ValueError):
        stats.update(words, chars)
    assert stats.snapshot() == StatisticsSnapshot()
