"""Tests for the stored-content codec."""

import json

import pytest

from structured_editor.core.content import (
    blocks_to_text,
    content_to_text,
    dump_content,
    load_content,
    text_to_blocks,
)
from structured_editor.core.tree.deserializer import deserialize
from structured_editor.core.tree.extractor import extract
from structured_editor.errors import ParseError
from structured_editor.models.content import ImageBlock, ParsedContent, TextBlock

STORED = json.dumps(
    {
        "blocks": [
            {"type": "text", "content": "Hello\n"},
            {"type": "image", "path": "@communityImage/12/abc.png"},
            {"type": "text", "content": "\nBye"},
        ]
    }
)


def test_load_content_parses_blocks() -> None:
    parsed = load_content(STORED)
    assert parsed == ParsedContent(
        (
            TextBlock("Hello\n"),
            ImageBlock("@communityImage/12/abc.png"),
            TextBlock("\nBye"),
        )
    )
    assert parsed.image_filenames == ("abc.png",)


def test_load_content_skips_unknown_blocks() -> None:
    raw = json.dumps({"blocks": [{"type": "video", "src": "x"}, {"type": "text", "content": "t"}]})
    assert load_content(raw).blocks == (TextBlock("t"),)


@pytest.mark.parametrize("raw", ["just some old text", "[1, 2]", '{"text": "no blocks"}'])
def test_load_content_rejects_non_block_documents(raw: str) -> None:
    with pytest.raises(ParseError):
        load_content(raw)


def test_dump_content_is_compact_and_keeps_unicode() -> None:
    dumped = dump_content([TextBlock("안녕"), ImageBlock("@diaryImage/1/a.png")])
    assert dumped == (
        '{"blocks":[{"type":"text","content":"안녕"},'
        '{"type":"image","path":"@diaryImage/1/a.png"}]}'
    )
    assert load_content(dumped).blocks == (TextBlock("안녕"), ImageBlock("@diaryImage/1/a.png"))


def test_content_to_text_renders_images_by_filename() -> None:
    assert content_to_text(STORED) == "Hello\n[image]{abc.png}\nBye"


def test_content_to_text_falls_back_to_legacy_text() -> None:
    assert content_to_text("written before blocks existed") == "written before blocks existed"


def test_content_to_text_of_missing_content() -> None:
    assert content_to_text(None) == ""
    assert content_to_text("") == ""


def test_stored_blocks_survive_a_tree_round_trip() -> None:
    blocks = load_content(STORED).blocks
    tree = deserialize(blocks_to_text(blocks), 12)
    assert tuple(extract(tree, 12, namespace="@communityImage")) == blocks


def test_text_to_blocks_trims_and_caps_blank_lines() -> None:
    blocks = text_to_blocks("  intro  \n\n\n\nbody[image]{x.png}\n\n\n", 4, namespace="@diaryImage")
    assert blocks == [
        TextBlock("intro\n\nbody"),
        ImageBlock("@diaryImage/4/x.png"),
        TextBlock("\n"),
    ]


def test_text_to_blocks_drops_blank_runs_without_newlines() -> None:
    blocks = text_to_blocks("[image]{a} \t[image]{b}", None, namespace="@communityImage")
    assert blocks == [ImageBlock("@communityImage/0/a"), ImageBlock("@communityImage/0/b")]


def test_text_to_blocks_trims_blank_lines_between_images() -> None:
    blocks = text_to_blocks("[image]{a}\n  \t\n[image]{b}", 1, namespace="@communityImage")
    assert blocks == [
        ImageBlock("@communityImage/1/a"),
        TextBlock("\n"),
        ImageBlock("@communityImage/1/b"),
    ]
