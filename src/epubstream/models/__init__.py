"""Data models."""

from epubstream.models.book import ParsedEpub, StatisticsSnapshot
from epubstream.models.chapter import (
    Chapter,
    ChapterFailure,
    CommentNode,
    FlatNode,
    ElementNode,
    ParsedNode,
    ParseMode,
    ParseResult,
    TextNode,
)
from epubstream.models.epub import (
    ArchiveEntry,
    ManifestEntry,
    PackageDocument,
    PackageMetadata,
    SpineItem,
)
from epubstream.models.output import (
    BookOutput,
    ChapterMetadata,
    ChapterOutput,
)

__all__ = [
    # Package models
    "ArchiveEntry",
    "ManifestEntry",
    "SpineItem",
    "PackageMetadata",
    "PackageDocument",
    # Chapter models
    "ParseMode",
    "ElementNode",
    "TextNode",
    "CommentNode",
    "FlatNode",
    "ParsedNode",
    "ParseResult",
    "ChapterFailure",
    "Chapter",
    # Book models
    "StatisticsSnapshot",
    "ParsedEpub",
    # Output models
    "ChapterMetadata",
    "ChapterOutput",
    "BookOutput",
]
