"""Tests for block extraction from the node tree."""

from structured_editor.core.tree.deserializer import deserialize
from structured_editor.core.tree.extractor import extract
from structured_editor.models.content import ImageBlock, TextBlock
from structured_editor.models.profile import Markup
from structured_editor.models.tree import (
    Bold,
    DurableMedia,
    MediaPlaceholder,
    NodeTree,
    Paragraph,
    PendingMedia,
    Text,
)

NS = "@communityImage"


def test_empty_tree_has_no_blocks() -> None:
    assert extract(NodeTree(), 1, namespace=NS) == []


def test_blank_paragraphs_are_not_collapsed() -> None:
    tree = NodeTree(
        [Paragraph([Text("A")]), Paragraph(), Paragraph(), Paragraph(), Paragraph([Text("B")])]
    )
    assert extract(tree, 1, namespace=NS) == [TextBlock("A\n\n\n\nB")]


def test_media_becomes_image_blocks_in_order() -> None:
    pending = PendingMedia(ephemeral_id="temp_9_z", data=b"x", filename="new.png")
    tree = NodeTree(
        [
            Paragraph([Text("Hello")]),
            Paragraph([MediaPlaceholder(ref=DurableMedia(parent_id=3, filename="old.png"))]),
            Paragraph([Text("World")]),
            Paragraph([MediaPlaceholder(ref=pending)]),
        ]
    )

    assert extract(tree, 3, namespace=NS) == [
        TextBlock("Hello\n"),
        ImageBlock("@communityImage/3/old.png"),
        TextBlock("\nWorld\n"),
        ImageBlock("@communityImage/3/temp_9_z"),
    ]


def test_unsaved_document_uses_placeholder_parent() -> None:
    pending = PendingMedia(ephemeral_id="temp_9_z", data=b"x", filename="new.png")
    tree = NodeTree([Paragraph([MediaPlaceholder(ref=pending)])])
    assert extract(tree, None, namespace="@diaryImage") == [ImageBlock("@diaryImage/0/temp_9_z")]


def test_whitespace_between_adjacent_images_is_dropped() -> None:
    tree = deserialize("[image]{a.png} [image]{b.png}", 1)
    assert extract(tree, 1, namespace=NS) == [
        ImageBlock("@communityImage/1/a.png"),
        ImageBlock("@communityImage/1/b.png"),
    ]


def test_document_edges_are_trimmed() -> None:
    tree = NodeTree([Paragraph(), Paragraph([Text("x")]), Paragraph()])
    assert extract(tree, 1, namespace=NS) == [TextBlock("x")]


def test_journal_markup_is_kept_in_text_blocks() -> None:
    tree = NodeTree([Paragraph([Text("a "), Bold([Text("b")])])])
    assert extract(tree, 1, namespace="@diaryImage") == [TextBlock("a **b**")]


def test_image_count_matches_placeholder_count() -> None:
    texts = [
        "[image]{a}[image]{b}\n\n[image]{c}",
        "x\n[image]{a}\n\n\ny **[image]{b}**",
        "no media at all",
        "[image]{a}",
    ]
    for text in texts:
        tree = deserialize(text, 1, markup=Markup.JOURNAL)
        blocks = extract(tree, 1, namespace=NS)
        images = [b for b in blocks if isinstance(b, ImageBlock)]
        assert len(images) == tree.media_count(), text


def test_literal_token_text_does_not_become_an_image() -> None:
    tree = NodeTree([Paragraph([Text("see [image]{fake}")])])
    assert extract(tree, 1, namespace=NS) == [TextBlock("see [image]{fake}")]
