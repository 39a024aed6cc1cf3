"""Data models for EPUB package structure."""

from pydantic import BaseModel, ConfigDict, Field


class ArchiveEntry(BaseModel):
    """Single entry of the ZIP central directory."""

    model_config = ConfigDict(frozen=True)

    path: str
    compressed_size: int
    uncompressed_size: int
    compression_method: int
    is_dir: bool = False


class PackageMetadata(BaseModel):
    """Bibliographic metadata from the OPF <metadata> block."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    authors: list[str] = Field(default_factory=list)
    language: str | None = None
    identifier: str | None = None
    date: str | None = None
    # Less common fields
    languages: list[str] = Field(default_factory=list)
    identifiers: list[str] = Field(default_factory=list)
    description: str | None = None
    publisher: str | None = None
    subjects: list[str] = Field(default_factory=list)
    rights: str | None = None
    contributors: list[str] = Field(default_factory=list)


class ManifestEntry(BaseModel):
    """Manifest item resolved against the OPF location."""

    model_config = ConfigDict(frozen=True)

    id: str
    href: str  # As written in the OPF
    path: str  # Archive path
    media_type: str = ""
    properties: str | None = None


class SpineItem(BaseModel):
    """Single itemref of the spine."""

    model_config = ConfigDict(frozen=True)

    idref: str
    linear: bool = True


class PackageDocument(BaseModel):
    """Parsed OPF: metadata, manifest and reading order."""

    model_config = ConfigDict(frozen=True)

    opf_path: str
    version: str | None = None
    metadata: PackageMetadata
    manifest: dict[str, ManifestEntry] = Field(default_factory=dict)
    spine: list[SpineItem] = Field(default_factory=list)
    toc_id: str | None = None

    @property
    def spine_order(self) -> list[str]:
        return [item.idref for item in self.spine]

    def spine_entries(self) -> list[ManifestEntry]:
        """Manifest entries in reading order."""
        return [self.manifest[item.idref] for item in self.spine]
