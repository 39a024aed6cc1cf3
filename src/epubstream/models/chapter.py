"""Data models for parsed chapter content.

Trees are nested ElementNode models in memory. In JSON they are written as
a flat list of nodes in document order, each pointing at its parent by
index, so arbitrarily deep (unclosed) markup still serializes.
"""

from enum import Enum
from typing import Annotated, Any, Iterator, Literal, Sequence, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer


class ParseMode(str, Enum):
    """What the markup parser should produce."""

    TEXT = "text"  # Plain text only
    TREE = "tree"  # Plain text and node tree


class TextNode(BaseModel):
    """Character data."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    content: str


class CommentNode(BaseModel):
    """Markup comment, kept in the tree but never part of the text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["comment"] = "comment"
    content: str


class FlatNode(BaseModel):
    """One tree node in flattened, document-order form."""

    model_config = ConfigDict(frozen=True)

    type: Literal["element", "text", "comment"]
    parent: int | None = None  # Index of the parent element; None for the root
    tag: str | None = None
    attrs: tuple[tuple[str, str], ...] = ()
    content: str | None = None


class ElementNode(BaseModel):
    """Element with ordered attributes and children."""

    model_config = ConfigDict(frozen=True)

    type: Literal["element"] = "element"
    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple["ParsedNode", ...] = ()

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of attribute *name*."""
        for key, value in self.attrs:
            if key == name:
                return value
        return default

    def iter_elements(self) -> Iterator["ElementNode"]:
        """Yield this element and all descendant elements in document order."""
        stack: list[ElementNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(
                child
                for child in reversed(node.children)
                if isinstance(child, ElementNode)
            )

    def find_all(self, tag: str) -> list["ElementNode"]:
        return [node for node in self.iter_elements() if node.tag == tag]

    def flatten(self) -> list[FlatNode]:
        """Return the subtree as flat nodes in document order."""
        nodes: list[FlatNode] = []
        stack: list[tuple[ParsedNode, int | None]] = [(self, None)]
        while stack:
            node, parent = stack.pop()
            index = len(nodes)
            if isinstance(node, ElementNode):
                nodes.append(
                    FlatNode(type="element", parent=parent, tag=node.tag, attrs=node.attrs)
                )
                stack.extend((child, index) for child in reversed(node.children))
            else:
                nodes.append(FlatNode(type=node.type, parent=parent, content=node.content))
        return nodes

    @classmethod
    def from_flat(cls, nodes: Sequence[FlatNode]) -> "ElementNode":
        """Rebuild a tree from the output of ``flatten()``."""
        if not nodes or nodes[0].type != "element" or nodes[0].parent is not None:
            raise ValueError("Flat tree must start with its root element")

        children: list[list[ParsedNode]] = [[] for _ in nodes]
        root: ElementNode | None = None
        # Parents always precede their children, so build back to front
        for index in range(len(nodes) - 1, -1, -1):
            flat = nodes[index]
            if flat.type == "element":
                node: ParsedNode = cls.model_construct(
                    type="element",
                    tag=flat.tag or "",
                    attrs=flat.attrs,
                    children=tuple(reversed(children[index])),
                )
            elif flat.type == "text":
                node = TextNode.model_construct(type="text", content=flat.content or "")
            else:
                node = CommentNode.model_construct(type="comment", content=flat.content or "")

            if index == 0:
                root = node
                continue
            parent = flat.parent
            if parent is None or not 0 <= parent < index or nodes[parent].type != "element":
                raise ValueError(f"Flat node {index} has an invalid parent {parent!r}")
            children[parent].append(node)
        return root


ParsedNode = Annotated[
    Union[ElementNode, TextNode, CommentNode], Field(discriminator="type")
]

ElementNode.model_rebuild()


def _dump_flat(tree: ElementNode) -> list[dict[str, Any]]:
    return [node.model_dump(mode="json", exclude_defaults=True) for node in tree.flatten()]


def _load_flat(value: Any) -> Any:
    if isinstance(value, list):
        return ElementNode.from_flat([FlatNode.model_validate(item) for item in value])
    return value


# Tree field that round-trips through JSON as a flat node list
SerializedTree = Annotated[
    ElementNode,
    BeforeValidator(_load_flat),
    PlainSerializer(_dump_flat, when_used="json"),
]


class ParseResult(BaseModel):
    """Both projections of a single chapter parse."""

    model_config = ConfigDict(frozen=True)

    text: str
    tree: SerializedTree | None = None
    word_count: int = 0
    char_count: int = 0


class ChapterFailure(BaseModel):
    """Marker for a spine position that could not be extracted."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["read", "parse"]
    message: str
    error_type: str


class Chapter(BaseModel):
    """One spine position worth of extracted content."""

    model_config = ConfigDict(frozen=True)

    spine_index: int
    idref: str
    path: str
    media_type: str = ""
    text: str = ""
    tree: SerializedTree | None = None
    word_count: int = 0
    char_count: int = 0
    error: ChapterFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
