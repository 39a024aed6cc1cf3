"""Bibliographic metadata from the OPF <metadata> block."""

from lxml import etree

from epubstream.core.markup import element_text, iter_local, local_attr, local_name
from epubstream.models.epub import PackageMetadata

# Dublin Core elements we collect; repeated ones keep document order
_DC_FIELDS = frozenset(
    {
        "title", "creator", "language", "identifier", "date", "description",
        "publisher", "subject", "rights", "contributor",
    }
)


class MetadataExtractor:
    """Build a PackageMetadata record from a parsed OPF root."""

    def extract(self, package: etree._Element) -> PackageMetadata:
        block = next(iter_local(package, "metadata"), None)
        if block is None:
            return PackageMetadata()

        values: dict[str, list[str]] = {}
        identifier_ids: dict[str, str] = {}

        # iter() rather than children: EPUB 2 may nest a <dc-metadata> block
        for element in block.iter():
            if not isinstance(element.tag, str):
                continue
            name = local_name(element.tag).lower()
            if name not in _DC_FIELDS:
                continue
            text = element_text(element)
            if not text:
                continue
            values.setdefault(name, []).append(text)
            if name == "identifier" and element.get("id"):
                identifier_ids[element.get("id")] = text

        def first(name: str) -> str | None:
            found = values.get(name)
            return found[0] if found else None

        unique_id = local_attr(package, "unique-identifier")
        identifier = identifier_ids.get(unique_id) if unique_id else None

        return PackageMetadata(
            title=first("title") or "",
            authors=values.get("creator", []),
            language=first("language"),
            identifier=identifier or first("identifier"),
            date=first("date"),
            languages=values.get("language", []),
            identifiers=values.get("identifier", []),
            description=first("description"),
            publisher=first("publisher"),
            subjects=values.get("subject", []),
            rights=first("rights"),
            contributors=values.get("contributor", []),
        )
