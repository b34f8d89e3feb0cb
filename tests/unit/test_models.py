"""Tests for domain models."""

import pytest

from structured_editor.models.content import ImageBlock, ParsedContent, TextBlock, image_path
from structured_editor.models.tree import (
    Bold,
    DurableMedia,
    MediaPlaceholder,
    NodeTree,
    Paragraph,
    PendingMedia,
    Text,
)


def test_blocks_are_frozen() -> None:
    block = TextBlock("x")
    with pytest.raises(AttributeError):
        block.content = "changed"  # type: ignore[misc]


def test_image_block_filename_is_last_path_segment() -> None:
    block = ImageBlock(image_path("@diaryImage", 7, "chart.png"))
    assert block.path == "@diaryImage/7/chart.png"
    assert block.filename == "chart.png"


def test_parsed_content_to_dict() -> None:
    content = ParsedContent((TextBlock("a"), ImageBlock("@communityImage/1/b.png")))
    assert content.to_dict() == {
        "blocks": [
            {"type": "text", "content": "a"},
            {"type": "image", "path": "@communityImage/1/b.png"},
        ]
    }


def test_media_ids() -> None:
    pending = MediaPlaceholder(ref=PendingMedia(ephemeral_id="temp_1_a", data=b"", filename="a"))
    durable = MediaPlaceholder(ref=DurableMedia(parent_id=1, filename="b.png"))
    assert pending.media_id == "temp_1_a"
    assert pending.is_pending
    assert durable.media_id == "b.png"
    assert not durable.is_pending


def test_tree_finds_placeholders_inside_formatting() -> None:
    inner = MediaPlaceholder(ref=DurableMedia(parent_id=1, filename="in.png"))
    outer = MediaPlaceholder(ref=DurableMedia(parent_id=1, filename="out.png"))
    tree = NodeTree([Paragraph([Bold([Text("x"), inner])]), Paragraph([outer])])

    assert list(tree.placeholders()) == [inner, outer]
    assert tree.media_count() == 2


def test_tree_remove_matches_by_identity() -> None:
    first = MediaPlaceholder(ref=DurableMedia(parent_id=1, filename="same.png"))
    second = MediaPlaceholder(ref=DurableMedia(parent_id=1, filename="same.png"))
    tree = NodeTree([Paragraph([first, second])])

    assert tree.remove(second)
    assert tree.paragraphs[0].children[0] is first
    assert not tree.remove(second)


def test_last_paragraph_creates_one_for_empty_tree() -> None:
    tree = NodeTree()
    paragraph = tree.last_paragraph()
    assert tree.paragraphs == [paragraph]
