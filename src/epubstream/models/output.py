"""Data models for output format."""

from datetime import datetime

from pydantic import BaseModel, Field

from epubstream.models.book import StatisticsSnapshot
from epubstream.models.chapter import ChapterFailure, SerializedTree
from epubstream.models.epub import PackageMetadata


class ChapterMetadata(BaseModel):
    """Metadata accompanying chapter content."""

    spine_index: int
    idref: str
    source_file: str  # Path inside the EPUB
    source_path: str  # Path of the EPUB itself
    extracted_at: datetime = Field(default_factory=datetime.now)
    word_count: int
    character_count: int
    error: ChapterFailure | None = None


class ChapterOutput(BaseModel):
    """Complete chapter output."""

    metadata: ChapterMetadata
    content: str
    tree: SerializedTree | None = None  # Flat node list in JSON


class BookOutput(BaseModel):
    """Complete book output manifest."""

    book_title: str
    authors: list[str]
    metadata: PackageMetadata
    total_chapters: int
    output_directory: str
    created_at: datetime = Field(default_factory=datetime.now)
    chapters: list[ChapterMetadata]
    statistics: StatisticsSnapshot
    warnings: list[str] = Field(default_factory=list)
