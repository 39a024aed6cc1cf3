"""Markup handling for EPUB documents.

Two strategies, chosen by the role of the document rather than its content:

* Package documents (``container.xml``, the OPF) are XML by definition and
  are parsed strictly with lxml; malformation is an error.
* Chapter documents are parsed with BeautifulSoup on top of lxml's HTML
  parser, which applies HTML error recovery (unclosed tags are closed,
  stray text is moved into the body, unknown tags are kept).

A chapter is walked once; the walk emits plain text and, when asked for,
builds the node tree at the same time.
"""

import logging
import re
import warnings
from dataclasses import dataclass, field
from typing import Iterator

from bs4 import (
    BeautifulSoup,
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
    XMLParsedAsHTMLWarning,
)
from bs4.builder import ParserRejectedMarkup
from lxml import etree

from epubstream.errors import ChapterParseError, EpubError
from epubstream.models.chapter import (
    CommentNode,
    ElementNode,
    ParsedNode,
    ParseMode,
    ParseResult,
    TextNode,
)

# Chapters are XHTML but go through the HTML parser
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

# Elements whose start and end separate lines of text
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "br", "caption",
        "dd", "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
        "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hgroup", "hr", "html", "li", "main", "nav", "ol", "p",
        "pre", "section", "summary", "table", "tbody", "td", "tfoot", "th",
        "thead", "tr", "ul",
    }
)

# Elements whose content never contributes text
EXCLUDED_TAGS = frozenset({"script", "style"})

DOCUMENT_TAG = "#document"

_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# Counting
# =============================================================================


def count_words(text: str) -> int:
    """Number of maximal non-whitespace runs."""
    return len(text.split())


def count_chars(text: str) -> int:
    """Number of Unicode code points (not bytes)."""
    return len(text)


# =============================================================================
# Strict XML (package documents)
# =============================================================================


def local_name(name: str) -> str:
    """Strip a ``{namespace}`` or ``prefix:`` qualifier from a tag or attribute."""
    if name.startswith("{"):
        name = name.rpartition("}")[2]
    return name.rpartition(":")[2]


def parse_xml(data: bytes, *, path: str, error_cls: type[EpubError]) -> etree._Element:
    """Parse a package document strictly and return its root element.

    Undeclared namespace prefixes (``dc:title`` without ``xmlns:dc``) are
    common in the wild and are the only problem tolerated; any other
    well-formedness error raises *error_cls*.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        if not _only_namespace_errors(parser.error_log):
            raise error_cls(f"Malformed XML: {exc}", path) from exc
        log.debug("Undeclared namespace prefixes in %s, reparsing leniently", path)
        lenient = etree.XMLParser(resolve_entities=False, no_network=True, recover=True)
        root = etree.fromstring(data, lenient)

    if root is None:
        raise error_cls("Document has no root element", path)
    return root


def _only_namespace_errors(error_log) -> bool:
    errors = [error for error in error_log if error.level_name != "WARNING"]
    return bool(errors) and all(error.domain_name == "NAMESPACE" for error in errors)


def iter_local(root: etree._Element, name: str) -> Iterator[etree._Element]:
    """Yield descendants of *root* (inclusive) whose local name is *name*."""
    for element in root.iter():
        if isinstance(element.tag, str) and local_name(element.tag) == name:
            yield element


def local_attr(element: etree._Element, name: str) -> str | None:
    """Return attribute *name* regardless of its namespace prefix."""
    value = element.get(name)
    if value is not None:
        return value
    for key, value in element.attrib.items():
        if local_name(key) == name:
            return value
    return None


def element_text(element: etree._Element) -> str:
    """Whitespace-normalised text content of *element*."""
    return _WHITESPACE.sub(" ", "".join(element.itertext())).strip()


# =============================================================================
# Tolerant HTML (chapter documents)
# =============================================================================


class _TextBuilder:
    """Accumulate text, collapsing whitespace within each block."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._pending: list[str] = []

    def add(self, text: str) -> None:
        self._pending.append(text)

    def boundary(self) -> None:
        if not self._pending:
            return
        line = _WHITESPACE.sub(" ", "".join(self._pending)).strip()
        if line:
            self._lines.append(line)
        self._pending = []

    def result(self) -> str:
        self.boundary()
        return "\n".join(self._lines)


@dataclass
class _Frame:
    """An element being walked."""

    tag: Tag
    name: str
    emits: bool  # Inside the text scope
    hidden: bool  # Inside script/style
    block: bool
    children: Iterator = field(init=False)
    nodes: list[ParsedNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.children = iter(self.tag.contents)


class MarkupParser:
    """Fault-tolerant chapter parser producing text and, optionally, a tree."""

    def __init__(self, mode: ParseMode = ParseMode.TEXT):
        self.mode = mode

    def parse(self, data: bytes | str, *, path: str | None = None) -> ParseResult:
        """Parse chapter markup; never fails on malformed input."""
        try:
            soup = BeautifulSoup(data, "lxml", multi_valued_attributes=None)
            text, tree = self._walk(soup, build_tree=self.mode is ParseMode.TREE)
        except (ParserRejectedMarkup, ValueError, UnicodeError, RecursionError) as exc:
            raise ChapterParseError(f"Unrecoverable markup: {exc}", path) from exc

        return ParseResult(
            text=text,
            tree=tree,
            word_count=count_words(text),
            char_count=count_chars(text),
        )

    def extract_text(self, data: bytes | str) -> str:
        return self.parse(data).text

    def _walk(
        self, soup: BeautifulSoup, *, build_tree: bool
    ) -> tuple[str, ElementNode | None]:
        """Depth-first walk emitting text and building nodes in one pass."""
        root = soup.find("html") or soup
        scope = soup.find("body")
        text = _TextBuilder()

        stack = [
            _Frame(
                tag=root,
                name=DOCUMENT_TAG if root is soup else root.name,
                emits=scope is None or root is scope,
                hidden=False,
                block=root is not soup,
            )
        ]
        tree: ElementNode | None = None

        while stack:
            frame = stack[-1]
            child = next(frame.children, None)

            if child is None:
                stack.pop()
                if frame.block and frame.emits:
                    text.boundary()
                if build_tree:
                    node = ElementNode.model_construct(
                        type="element",
                        tag=frame.name,
                        attrs=tuple((k, str(v)) for k, v in frame.tag.attrs.items()),
                        children=tuple(frame.nodes),
                    )
                    if stack:
                        stack[-1].nodes.append(node)
                    else:
                        tree = node
                continue

            if isinstance(child, Comment):
                if build_tree:
                    frame.nodes.append(
                        CommentNode.model_construct(type="comment", content=str(child))
                    )
            elif isinstance(child, (Doctype, Declaration, ProcessingInstruction)):
                continue
            elif isinstance(child, (CData, NavigableString)):
                content = str(child)
                if frame.emits and not frame.hidden:
                    text.add(content)
                if build_tree:
                    frame.nodes.append(TextNode.model_construct(type="text", content=content))
            elif isinstance(child, Tag):
                name = child.name.lower()
                emits = frame.emits or child is scope
                block = name in BLOCK_TAGS
                if block and emits:
                    text.boundary()
                stack.append(
                    _Frame(
                        tag=child,
                        name=name,
                        emits=emits,
                        hidden=frame.hidden or name in EXCLUDED_TAGS,
                        block=block,
                    )
                )

        return text.result(), tree
