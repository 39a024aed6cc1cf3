"""Data models for whole-book results."""

from pydantic import BaseModel, ConfigDict, Field

from epubstream.models.chapter import Chapter
from epubstream.models.epub import PackageMetadata


class StatisticsSnapshot(BaseModel):
    """Running totals at a point in the chapter stream."""

    model_config = ConfigDict(frozen=True)

    total_words: int = 0
    total_chars: int = 0
    chapters_completed: int = 0
    chapters_failed: int = 0


class ParsedEpub(BaseModel):
    """Complete eagerly-extracted EPUB."""

    metadata: PackageMetadata
    chapters: list[Chapter]
    spine_order: list[str] = Field(default_factory=list)
    statistics: StatisticsSnapshot = Field(default_factory=StatisticsSnapshot)

    @property
    def failed_chapters(self) -> list[Chapter]:
        return [chapter for chapter in self.chapters if not chapter.ok]
