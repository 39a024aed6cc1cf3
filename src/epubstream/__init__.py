"""Streaming extraction of metadata, chapter text and markup trees from EPUB files."""

from epubstream.config import ExtractorConfig
from epubstream.core.epub_parser import (
    EpubParser,
    extract_text_only,
    extract_tree,
    get_metadata,
)
from epubstream.errors import (
    ArchiveError,
    ChapterParseError,
    ContainerError,
    DecompressionError,
    EntryNotFoundError,
    EpubError,
    MalformedContainerError,
    MalformedOpfError,
    MissingContainerError,
    MissingOpfError,
    NotAnArchiveError,
    SpineReferenceError,
    StructuralError,
    TruncatedArchiveError,
    UnreadableArchiveError,
)
from epubstream.models import (
    Chapter,
    ChapterFailure,
    ElementNode,
    PackageMetadata,
    ParsedEpub,
    ParseMode,
    StatisticsSnapshot,
)

__version__ = "0.1.0"

__all__ = [
    "EpubParser",
    "ExtractorConfig",
    "extract_text_only",
    "extract_tree",
    "get_metadata",
    # Models
    "Chapter",
    "ChapterFailure",
    "ElementNode",
    "PackageMetadata",
    "ParsedEpub",
    "ParseMode",
    "StatisticsSnapshot",
    # Errors
    "EpubError",
    "ArchiveError",
    "NotAnArchiveError",
    "TruncatedArchiveError",
    "UnreadableArchiveError",
    "ContainerError",
    "MissingContainerError",
    "MalformedContainerError",
    "MissingOpfError",
    "MalformedOpfError",
    "StructuralError",
    "SpineReferenceError",
    "EntryNotFoundError",
    "DecompressionError",
    "ChapterParseError",
]
