"""Exception hierarchy for EPUB extraction.

Archive-level and structural errors abort the whole extraction. Entry-level
errors (missing entry, bad compressed data, unparseable markup) are fatal when
raised by a direct call, but the chapter pipeline captures them per spine
position instead of aborting.
"""


class EpubError(Exception):
    """Base class for all extraction errors."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


# =============================================================================
# Archive-level
# =============================================================================


class ArchiveError(EpubError):
    """The container itself cannot be used."""


class NotAnArchiveError(ArchiveError):
    """Source is not a ZIP container."""


class TruncatedArchiveError(ArchiveError):
    """Source looks like a ZIP but its central directory is missing or corrupt."""


class UnreadableArchiveError(ArchiveError):
    """Source could not be opened or read."""


class ContainerError(ArchiveError):
    """Problem locating or reading the package document."""


class MissingContainerError(ContainerError):
    pass


class MalformedContainerError(ContainerError):
    pass


class MissingOpfError(ContainerError):
    pass


class MalformedOpfError(ContainerError):
    pass


# =============================================================================
# Structural
# =============================================================================


class StructuralError(EpubError):
    """Package document is well-formed but internally inconsistent."""


class SpineReferenceError(StructuralError):
    """A spine itemref points at an id missing from the manifest."""

    def __init__(self, idref: str, path: str | None = None):
        self.idref = idref
        super().__init__(f"Spine references unknown manifest id '{idref}'", path)


# =============================================================================
# Entry-level (chapter-scoped while streaming)
# =============================================================================


class EntryNotFoundError(EpubError):
    """Requested entry does not exist in the archive."""


class DecompressionError(EpubError):
    """Entry exists but its data could not be decompressed."""


class ChapterParseError(EpubError):
    """Chapter markup could not be recovered into a document."""
