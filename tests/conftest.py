"""Pytest configuration and EPUB fixtures built in memory."""

import io
import zipfile
from pathlib import Path

import pytest

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

DEFAULT_METADATA = """<metadata xmlns:dc="http://purl.org/dc/elements/1.1/"
            xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:title>Sample Book</dc:title>
    <dc:creator opf:role="aut">Jane Doe</dc:creator>
    <dc:creator>John Roe</dc:creator>
    <dc:language>en</dc:language>
    <dc:identifier id="bookid">urn:uuid:1234</dc:identifier>
    <dc:date>2020-01-01</dc:date>
  </metadata>"""

SAMPLE_CHAPTERS = [
    ("ch1", "text/ch1.xhtml", "<h1>Chapter One</h1><p>Hello&nbsp;World</p><p>Two</p>"),
    ("ch2", "text/ch2.xhtml", "<p>It was a dark night.</p><script>var x = 1;</script>"),
    ("ch3", "text/ch3.xhtml", "<p>Café</p>"),
]


def chapter_xhtml(body: str, title: str = "Chapter") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<html xmlns="http://www.w3.org/1999/xhtml">'
        f"<head><title>{title}</title></head>"
        f"<body>{body}</body></html>"
    )


def make_opf(
    items: list[tuple[str, str]],
    *,
    metadata: str = DEFAULT_METADATA,
    spine: list[str] | None = None,
) -> str:
    """Build an OPF from (id, href) manifest items; spine defaults to all ids."""
    manifest = "\n    ".join(
        f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>'
        for item_id, href in items
    )
    spine_ids = spine if spine is not None else [item_id for item_id, _ in items]
    itemrefs = "\n    ".join(f'<itemref idref="{idref}"/>' for idref in spine_ids)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0" '
        'unique-identifier="bookid">\n'
        f"  {metadata}\n"
        f"  <manifest>\n    {manifest}\n  </manifest>\n"
        f'  <spine toc="ncx">\n    {itemrefs}\n  </spine>\n'
        "</package>\n"
    )


def build_epub(
    chapters: list[tuple[str, str, str]] = SAMPLE_CHAPTERS,
    *,
    opf_dir: str = "OEBPS",
    opf: str | None = None,
    container: str | None = None,
    include_container: bool = True,
    skip_files: tuple[str, ...] = (),
    extra_entries: dict[str, bytes | str] | None = None,
    reverse_entries: bool = False,
) -> bytes:
    """Assemble an EPUB from (id, href, body) chapters and return its bytes."""
    opf_path = f"{opf_dir}/content.opf" if opf_dir else "content.opf"
    prefix = f"{opf_dir}/" if opf_dir else ""

    entries: list[tuple[str, bytes | str]] = [("mimetype", "application/epub+zip")]
    if include_container:
        entries.append(
            ("META-INF/container.xml", container or CONTAINER_XML.format(opf_path=opf_path))
        )
    entries.append(
        (opf_path, opf or make_opf([(item_id, href) for item_id, href, _ in chapters]))
    )

    chapter_entries = [
        (prefix + href, chapter_xhtml(body))
        for _, href, body in chapters
        if href not in skip_files
    ]
    if reverse_entries:
        chapter_entries.reverse()
    entries.extend(chapter_entries)
    entries.extend((extra_entries or {}).items())

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture()
def make_epub():
    """Factory fixture returning EPUB bytes; see ``build_epub``."""
    return build_epub


@pytest.fixture()
def sample_epub() -> bytes:
    return build_epub()


@pytest.fixture()
def sample_epub_path(tmp_path: Path, sample_epub: bytes) -> Path:
    path = tmp_path / "Sample Book.epub"
    path.write_bytes(sample_epub)
    return path


@pytest.fixture()
def opf_factory():
    """Factory fixture returning OPF text; see ``make_opf``."""
    return make_opf
