import pytest

from epubstream.core.markup import (
    MarkupParser,
    count_chars,
    count_words,
    local_name,
)
from epubstream.models.chapter import (
    CommentNode,
    ElementNode,
    FlatNode,
    ParseMode,
    TextNode,
)

from conftest import SAMPLE_CHAPTERS, chapter_xhtml


@pytest.fixture()
def text_parser() -> MarkupParser:
    return MarkupParser(ParseMode.TEXT)


@pytest.fixture()
def tree_parser() -> MarkupParser:
    return MarkupParser(ParseMode.TREE)


def test_entities_and_block_boundaries(text_parser: MarkupParser):
    result = text_parser.parse(chapter_xhtml(SAMPLE_CHAPTERS[0][2]).encode("utf-8"))
    assert result.text == "Chapter One\nHello World\nTwo"
    assert result.word_count == 5
    assert result.char_count == 27
    assert result.tree is None


def test_two_paragraphs_become_two_lines(text_parser: MarkupParser):
    result = text_parser.parse(b"<p>Hello&nbsp;World</p><p>Two</p>")
    assert result.text == "Hello World\nTwo"
    assert result.word_count == 3


def test_single_multibyte_character(text_parser: MarkupParser):
    result = text_parser.parse("<p>é</p>")
    assert result.char_count == 1
    assert result.word_count == 1


def test_nbsp_separates_words(text_parser: MarkupParser):
    result = text_parser.parse("<p>Hello&nbsp;World and&nbsp;more</p>")
    assert result.text == "Hello World and more"
    assert result.word_count == 4


def test_unclosed_paragraphs_are_recovered(text_parser: MarkupParser):
    result = text_parser.parse("<html><body><p>one<p>two<div>three</body>")
    assert result.text == "one\ntwo\nthree"
    assert result.word_count == 3


def test_script_and_style_are_excluded(text_parser: MarkupParser):
    markup = (
        "<html><head><style>p { color: red }</style></head>"
        "<body><p>Visible</p><script>var hidden = 1;</script>"
        "<style>.x {}</style></body></html>"
    )
    assert text_parser.parse(markup).text == "Visible"


def test_head_title_is_not_text(text_parser: MarkupParser):
    result = text_parser.parse(chapter_xhtml("<p>Body text</p>", title="Head Title"))
    assert "Head" not in result.text
    assert result.text == "Body text"


def test_inline_elements_join_text(text_parser: MarkupParser):
    result = text_parser.parse("<p>un<em>break</em>able and <b>bold</b> words</p>")
    assert result.text == "unbreakable and bold words"
    assert result.word_count == 4


def test_line_break_starts_new_line(text_parser: MarkupParser):
    assert text_parser.parse("<p>first<br/>second</p>").text == "first\nsecond"


def test_stray_text_without_markup(text_parser: MarkupParser):
    result = text_parser.parse("just some   loose\n text")
    assert result.text == "just some loose text"
    assert result.word_count == 4


def test_counts_code_points_not_bytes(text_parser: MarkupParser):
    result = text_parser.parse("<p>Café 😀</p>")
    assert result.text == "Café 😀"
    assert result.char_count == 6
    assert result.word_count == 2


def test_empty_body(text_parser: MarkupParser):
    result = text_parser.parse("<html><body></body></html>")
    assert result.text == ""
    assert result.word_count == 0
    assert result.char_count == 0


def test_tree_structure_and_attribute_order(tree_parser: MarkupParser):
    result = tree_parser.parse(
        '<html><body><div id="main" class="chapter intro" data-x="1">'
        "<p>Hi</p></div></body></html>"
    )
    tree = result.tree
    assert isinstance(tree, ElementNode)
    assert tree.tag == "html"
    div = tree.find_all("div")[0]
    assert div.attrs == (("id", "main"), ("class", "chapter intro"), ("data-x", "1"))
    assert div.get("class") == "chapter intro"
    assert div.get("missing") is None
    paragraph = div.children[0]
    assert isinstance(paragraph, ElementNode)
    assert paragraph.children == (TextNode(type="text", content="Hi"),)


def test_tree_keeps_comments_out_of_text(tree_parser: MarkupParser):
    result = tree_parser.parse("<p>a<!-- note -->b</p>")
    assert result.text == "ab"
    paragraph = result.tree.find_all("p")[0]
    assert CommentNode(type="comment", content=" note ") in paragraph.children


def test_unknown_elements_are_preserved(tree_parser: MarkupParser):
    result = tree_parser.parse('<p><custom-tag flag="on">kept</custom-tag></p>')
    assert result.text == "kept"
    (custom,) = result.tree.find_all("custom-tag")
    assert custom.get("flag") == "on"


def test_tree_and_text_modes_agree(text_parser: MarkupParser, tree_parser: MarkupParser):
    for _, _, body in SAMPLE_CHAPTERS:
        data = chapter_xhtml(body).encode("utf-8")
        text_result = text_parser.parse(data)
        tree_result = tree_parser.parse(data)
        assert tree_result.text == text_result.text
        assert tree_result.word_count == text_result.word_count
        assert tree_result.char_count == text_result.char_count


def test_tree_serializes_to_json(tree_parser: MarkupParser):
    tree = tree_parser.parse(chapter_xhtml("<p>a<!--c--><i>b</i></p>")).tree
    restored = ElementNode.model_validate_json(tree.model_dump_json())
    assert restored.model_dump() == tree.model_dump()
    assert [node.tag for node in restored.iter_elements()] == [
        "html", "head", "title", "body", "p", "i",
    ]


def test_deeply_nested_markup(text_parser: MarkupParser):
    depth = 200
    markup = "<div>" * depth + "deep" + "</div>" * depth
    assert text_parser.parse(markup).text == "deep"


def test_extract_text_shortcut(text_parser: MarkupParser):
    assert text_parser.extract_text("<p>Only text</p>") == "Only text"


@pytest.mark.parametrize(
    "text, words, chars",
    [("", 0, 0), ("one", 1, 3), ("  two\twords \n", 2, 13), ("a\nb c", 3, 5)],
)
def test_counting(text: str, words: int, chars: int):
    assert count_words(text) == words
    assert count_chars(text) == chars


@pytest.mark.parametrize(
    "name, expected",
    [
        ("{http://www.idpf.org/2007/opf}item", "item"),
        ("dc:title", "title"),
        ("plain", "plain"),
    ],
)
def test_local_name(name: str, expected: str):
    assert local_name(name) == expected


def test_flatten_keeps_document_order(tree_parser: MarkupParser):
    tree = tree_parser.parse("<p>a<!--c--><i>b</i></p>").tree
    flat = tree.flatten()
    assert [node.tag or node.content for node in flat] == [
        "html", "body", "p", "a", "c", "i", "b",
    ]
    assert ElementNode.from_flat(flat).model_dump() == tree.model_dump()


def test_from_flat_rejects_dangling_parent():
    nodes = [
        FlatNode(type="element", tag="html"),
        FlatNode(type="text", parent=5, content="x"),
    ]
    with pytest.raises(ValueError):
        ElementNode.from_flat(nodes)
    with pytest.raises(ValueError):
        ElementNode.from_flat([FlatNode(type="text", content="x")])
