"""Locate and parse the OPF package document of an EPUB."""

import logging
import posixpath
from urllib.parse import unquote, urldefrag

from lxml import etree

from epubstream.core.archive import EpubArchive
from epubstream.core.markup import iter_local, local_attr, local_name, parse_xml
from epubstream.core.metadata import MetadataExtractor
from epubstream.errors import (
    DecompressionError,
    EntryNotFoundError,
    MalformedContainerError,
    MalformedOpfError,
    MissingContainerError,
    MissingOpfError,
    SpineReferenceError,
    StructuralError,
)
from epubstream.models.epub import ManifestEntry, PackageDocument, SpineItem

log = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
OEBPS_MEDIA_TYPE = "application/oebps-package+xml"


def resolve_href(base_dir: str, href: str) -> str:
    """Turn a manifest href into an archive path relative to *base_dir*."""
    href = unquote(urldefrag(href)[0])
    if href.startswith("/"):
        return posixpath.normpath(href.lstrip("/"))
    joined = posixpath.join(base_dir, href) if base_dir else href
    return posixpath.normpath(joined)


class ContainerResolver:
    """Resolve container.xml → OPF → manifest, spine and metadata.

    Args:
        archive: Opened archive to read from
        metadata_extractor: Override for the metadata step
    """

    def __init__(
        self,
        archive: EpubArchive,
        metadata_extractor: MetadataExtractor | None = None,
    ):
        self.archive = archive
        self.metadata_extractor = metadata_extractor or MetadataExtractor()

    def resolve(self) -> PackageDocument:
        """Return the package document, failing on any structural problem."""
        opf_path = self.find_rootfile()
        data = self._read(opf_path, MissingOpfError, MalformedOpfError)
        root = parse_xml(data, path=opf_path, error_cls=MalformedOpfError)
        if local_name(root.tag) != "package":
            raise MalformedOpfError(f"Unexpected root element <{root.tag}>", opf_path)
        return self.parse_package(root, opf_path)

    def find_rootfile(self) -> str:
        """Return the OPF path named by META-INF/container.xml."""
        data = self._read(CONTAINER_PATH, MissingContainerError, MalformedContainerError)
        root = parse_xml(data, path=CONTAINER_PATH, error_cls=MalformedContainerError)

        rootfiles = [
            element
            for element in iter_local(root, "rootfile")
            if element.get("full-path")
        ]
        if not rootfiles:
            raise MalformedContainerError("No rootfile with a full-path", CONTAINER_PATH)

        chosen = next(
            (r for r in rootfiles if r.get("media-type") == OEBPS_MEDIA_TYPE),
            rootfiles[0],
        )
        # full-path is an archive path, not a URL: no percent-decoding or fragments
        opf_path = posixpath.normpath(chosen.get("full-path").lstrip("/"))
        log.debug("Package document at %s", opf_path)
        return opf_path

    def parse_package(self, root: etree._Element, opf_path: str) -> PackageDocument:
        base_dir = posixpath.dirname(opf_path)
        manifest = self._parse_manifest(root, base_dir, opf_path)
        spine, toc_id = self._parse_spine(root, manifest, opf_path)

        return PackageDocument(
            opf_path=opf_path,
            version=root.get("version"),
            metadata=self.metadata_extractor.extract(root),
            manifest=manifest,
            spine=spine,
            toc_id=toc_id,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self, path: str, missing_cls, malformed_cls) -> bytes:
        try:
            return self.archive.read_entry(path)
        except EntryNotFoundError as exc:
            raise missing_cls("Required entry is missing", path) from exc
        except DecompressionError as exc:
            raise malformed_cls(f"Required entry is unreadable: {exc}", path) from exc

    def _parse_manifest(
        self, root: etree._Element, base_dir: str, opf_path: str
    ) -> dict[str, ManifestEntry]:
        manifest: dict[str, ManifestEntry] = {}
        block = next(iter_local(root, "manifest"), None)
        if block is None:
            log.warning("Package document has no manifest (%s)", opf_path)
            return manifest

        for item in iter_local(block, "item"):
            item_id = item.get("id")
            href = item.get("href")
            if not item_id or not href:
                log.warning("Skipping manifest item without id/href in %s", opf_path)
                continue
            if item_id in manifest:
                log.warning("Duplicate manifest id '%s' in %s, keeping first", item_id, opf_path)
                continue
            manifest[item_id] = ManifestEntry(
                id=item_id,
                href=href,
                path=resolve_href(base_dir, href),
                media_type=item.get("media-type", ""),
                properties=item.get("properties"),
            )
        return manifest

    def _parse_spine(
        self,
        root: etree._Element,
        manifest: dict[str, ManifestEntry],
        opf_path: str,
    ) -> tuple[list[SpineItem], str | None]:
        block = next(iter_local(root, "spine"), None)
        if block is None:
            log.warning("Package document has no spine (%s)", opf_path)
            return [], None

        spine: list[SpineItem] = []
        for itemref in iter_local(block, "itemref"):
            idref = local_attr(itemref, "idref")
            if not idref:
                raise StructuralError("Spine itemref without idref", opf_path)
            if idref not in manifest:
                raise SpineReferenceError(idref, opf_path)
            spine.append(SpineItem(idref=idref, linear=itemref.get("linear") != "no"))

        return spine, block.get("toc")
