"""Random access to the entries of an EPUB (ZIP) container.

The central directory is read once when the archive is opened; entry data is
only decompressed when an entry is requested.
"""

import io
import logging
import os
import threading
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Union

from epubstream.errors import (
    DecompressionError,
    EntryNotFoundError,
    NotAnArchiveError,
    TruncatedArchiveError,
    UnreadableArchiveError,
)
from epubstream.models.epub import ArchiveEntry

log = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]

MEMORY_SOURCE_NAME = "<memory>"


class EpubArchive:
    """Read-only view of a ZIP container backed by a file or a byte buffer."""

    def __init__(self, source: ArchiveSource, *, max_entry_size: int | None = None):
        self.max_entry_size = max_entry_size
        self._lock = threading.Lock()
        self._owns_handle = True
        self.name, self._handle = self._open_handle(source)
        try:
            self._zip: zipfile.ZipFile | None = self._open_zip()
        except Exception:
            self._close_handle()
            raise

        infos = self._zip.infolist()
        self._index = {info.filename: info for info in infos}
        self._entries = [
            ArchiveEntry(
                path=info.filename,
                compressed_size=info.compress_size,
                uncompressed_size=info.file_size,
                compression_method=info.compress_type,
                is_dir=info.is_dir(),
            )
            for info in infos
        ]
        log.debug("Opened %s with %d entries", self.name, len(self._entries))

    @classmethod
    def open(
        cls, source: ArchiveSource, *, max_entry_size: int | None = None
    ) -> "EpubArchive":
        return cls(source, max_entry_size=max_entry_size)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_entries(self) -> list[ArchiveEntry]:
        """Return descriptors for every entry, in central directory order."""
        return list(self._entries)

    def read_entry(self, path: str) -> bytes:
        """Decompress and return the full contents of entry *path*."""
        if self._zip is None:
            raise UnreadableArchiveError("Archive is closed", self.name)

        info = self._index.get(path)
        if info is None or info.is_dir():
            raise EntryNotFoundError("Entry not found in archive", path)

        limit = self.max_entry_size
        if limit is not None and info.file_size > limit:
            raise DecompressionError(
                f"Entry declares {info.file_size} bytes, limit is {limit}", path
            )

        with self._lock:
            try:
                with self._zip.open(info) as fh:
                    data = fh.read() if limit is None else fh.read(limit + 1)
            except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as exc:
                raise DecompressionError(f"Cannot decompress entry: {exc}", path) from exc
            except RuntimeError as exc:
                # zipfile raises RuntimeError for encrypted entries
                raise DecompressionError(str(exc), path) from exc
            except OSError as exc:
                raise UnreadableArchiveError(f"Read failed: {exc}", self.name) from exc

        if limit is not None and len(data) > limit:
            raise DecompressionError(f"Entry exceeds {limit} bytes", path)
        return data

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
        self._close_handle()

    def __contains__(self, path: object) -> bool:
        info = self._index.get(path) if isinstance(path, str) else None
        return info is not None and not info.is_dir()

    def __enter__(self) -> "EpubArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_handle(self, source: ArchiveSource) -> tuple[str, BinaryIO]:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return MEMORY_SOURCE_NAME, io.BytesIO(bytes(source))

        if isinstance(source, (str, os.PathLike)):
            path = Path(source)
            try:
                return str(path), path.open("rb")
            except OSError as exc:
                raise UnreadableArchiveError(f"Cannot open file: {exc}", str(path)) from exc

        if hasattr(source, "read") and hasattr(source, "seek"):
            # Caller keeps ownership of file objects it passes in
            self._owns_handle = False
            return getattr(source, "name", None) or "<stream>", source

        raise TypeError(f"Unsupported archive source: {type(source).__name__}")

    def _open_zip(self) -> zipfile.ZipFile:
        try:
            self._handle.seek(0)
            header = self._handle.read(4)
            self._handle.seek(0)
        except OSError as exc:
            raise UnreadableArchiveError(f"Cannot read source: {exc}", self.name) from exc

        try:
            return zipfile.ZipFile(self._handle)
        except (zipfile.BadZipFile, EOFError) as exc:
            if header.startswith(b"PK"):
                raise TruncatedArchiveError(
                    "Central directory is missing or corrupt", self.name
                ) from exc
            raise NotAnArchiveError("Not a ZIP container", self.name) from exc
        except OSError as exc:
            raise UnreadableArchiveError(f"Cannot read source: {exc}", self.name) from exc

    def _close_handle(self) -> None:
        if self._owns_handle and not self._handle.closed:
            self._handle.close()
