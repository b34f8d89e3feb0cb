"""Tests for the marked-text serializer and its blank-line collapsing."""

from structured_editor.core.tree.deserializer import deserialize
from structured_editor.core.tree.serializer import byte_length, serialize
from structured_editor.models.tree import (
    Bold,
    DurableMedia,
    LineBreak,
    MediaPlaceholder,
    NodeTree,
    Paragraph,
    PendingMedia,
    Text,
    Underline,
)


def _tree(*lines: list) -> NodeTree:
    return NodeTree([Paragraph(list(children)) for children in lines])


def test_serialize_empty_tree() -> None:
    assert serialize(NodeTree()) == ""


def test_serialize_joins_paragraphs_with_one_newline() -> None:
    tree = _tree([Text("Hello")], [Text("World")])
    assert serialize(tree) == "Hello\nWorld"


def test_single_blank_paragraph_is_preserved() -> None:
    tree = _tree([Text("Hello")], [], [Text("World")])
    assert serialize(tree) == "Hello\n\nWorld"


def test_consecutive_blank_paragraphs_collapse_to_one_blank_line() -> None:
    tree = _tree([Text("A")], [], [], [], [Text("B")])
    assert serialize(tree) == "A\n\nB"


def test_whitespace_only_paragraph_counts_as_empty() -> None:
    tree = _tree([Text("A")], [Text("   ")], [], [Text("B")])
    assert serialize(tree) == "A\n\nB"


def test_leading_and_trailing_blank_paragraphs_are_trimmed() -> None:
    tree = _tree([], [], [Text("body")], [], [])
    assert serialize(tree) == "body"


def test_line_break_and_media_tokens() -> None:
    pending = PendingMedia(ephemeral_id="temp_1_abc", data=b"x", filename="a.png")
    durable = DurableMedia(parent_id=7, filename="stored.png")
    tree = _tree(
        [Text("one"), LineBreak(), Text("two")],
        [MediaPlaceholder(ref=pending), MediaPlaceholder(ref=durable)],
    )
    assert serialize(tree) == "one\ntwo\n[image]{temp_1_abc}[image]{stored.png}"


def test_media_only_paragraph_is_not_empty() -> None:
    ref = DurableMedia(parent_id=1, filename="f.png")
    tree = _tree([], [MediaPlaceholder(ref=ref)], [])
    assert serialize(tree) == "[image]{f.png}"


def test_bold_and_underline_keep_their_own_conventions() -> None:
    tree = _tree([Text("a "), Bold([Text("b")]), Text(" "), Underline([Text("c")])])
    assert serialize(tree) == "a **b** <u>c</u>"


def test_scenario_single_blank_line_round_trips() -> None:
    text = "Hello\n\nWorld"
    tree = deserialize(text, None)
    assert [p.children for p in tree.paragraphs] == [[Text("Hello")], [], [Text("World")]]
    assert serialize(tree) == text


def test_scenario_three_blank_lines_collapse() -> None:
    assert serialize(deserialize("A\n\n\n\nB", None)) == "A\n\nB"


def test_collapsing_is_idempotent() -> None:
    samples = [
        "A\n\n\n\nB",
        "\n\n lead\n\n\n  \n\ttrail \n\n",
        "x[image]{f.png}\n\n\n[image]{g.png}\ny",
        "plain",
        "",
    ]
    for text in samples:
        once = serialize(deserialize(text, 1))
        twice = serialize(deserialize(once, 1))
        assert twice == once, text


def test_byte_length_counts_utf8() -> None:
    tree = _tree([Text("가나")], [Text("a")])
    assert byte_length(tree) == len("가나\na".encode())
