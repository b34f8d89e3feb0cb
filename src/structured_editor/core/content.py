"""Convert stored content between JSON, block lists and marked text."""

import json
import re
from collections.abc import Iterable
from typing import Any

from loguru import logger

from structured_editor.config import UNSAVED_PARENT_ID
from structured_editor.core.tree.markup import MEDIA_TOKEN_RE, media_token
from structured_editor.errors import ParseError
from structured_editor.models.content import (
    Block,
    ImageBlock,
    ParentId,
    ParsedContent,
    TextBlock,
    image_path,
)


def parse_blocks(raw_blocks: Any) -> tuple[Block, ...]:
    """Build blocks from their JSON form. Unknown block types are skipped."""
    if not isinstance(raw_blocks, list):
        msg = f"blocks must be a list, got {type(raw_blocks).__name__}"
        raise ParseError(msg)

    blocks: list[Block] = []
    for raw in raw_blocks:
        if not isinstance(raw, dict):
            msg = f"bad block: {raw!r}"
            raise ParseError(msg)
        block_type = raw.get("type")
        if block_type == "text":
            blocks.append(TextBlock(raw.get("content") or ""))
        elif block_type == "image" and raw.get("path"):
            blocks.append(ImageBlock(raw["path"]))
        else:
            logger.debug("Skipping block of unknown shape: {!r}", raw)
    return tuple(blocks)


def load_content(raw: str) -> ParsedContent:
    """Parse a stored ``{"blocks": [...]}`` JSON string.

    Raises:
        ParseError: If ``raw`` is not a block document.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        msg = f"content is not JSON: {raw[:32]!r}"
        raise ParseError(msg) from e

    if not isinstance(data, dict) or "blocks" not in data:
        msg = f"content has no blocks: {raw[:32]!r}"
        raise ParseError(msg)
    return ParsedContent(parse_blocks(data["blocks"]))


def dump_content(blocks: Iterable[Block]) -> str:
    """Serialize blocks to the stored JSON string."""
    return json.dumps(
        ParsedContent(tuple(blocks)).to_dict(), ensure_ascii=False, separators=(",", ":")
    )


def blocks_to_text(blocks: Iterable[Block]) -> str:
    """Render blocks as marked text, images as ``[image]{filename}``.

    Blocks are concatenated as stored; text blocks carry their own newlines.
    """
    return "".join(
        media_token(b.filename) if isinstance(b, ImageBlock) else b.content for b in blocks
    )


def content_to_text(raw: str | None) -> str:
    """Marked text of stored content.

    Content written before the block format existed is plain text; it is
    returned unchanged.
    """
    if not raw:
        return ""
    try:
        parsed = load_content(raw)
    except ParseError as e:
        logger.warning("Treating content as legacy text: {}", e)
        return raw
    return blocks_to_text(parsed.blocks)


_EDGE_BLANKS_RE = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)


def _normalize_newlines(text: str) -> str:
    # Inner runs capped at one blank line, edges at a single newline.
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"^\n+", "\n", text)
    return re.sub(r"\n+$", "\n", text)


def _text_block(raw: str) -> TextBlock | None:
    trimmed = _EDGE_BLANKS_RE.sub("", raw)
    if not trimmed and "\n" not in raw:
        return None
    return TextBlock(_normalize_newlines(trimmed))


def text_to_blocks(text: str, parent_id: ParentId | None, *, namespace: str) -> list[Block]:
    """Tokenize hand-written marked text into blocks.

    This is the intake path for free text, not for editor trees: spaces and
    tabs at line edges are trimmed, runs of blank lines are capped at one and
    edge newlines at a single one.
    """
    if not text:
        return []

    path_parent = UNSAVED_PARENT_ID if parent_id is None else parent_id
    blocks: list[Block] = []
    last = 0
    for m in MEDIA_TOKEN_RE.finditer(text):
        if m.start() > last and (block := _text_block(text[last : m.start()])):
            blocks.append(block)
        blocks.append(ImageBlock(image_path(namespace, path_parent, m.group("media"))))
        last = m.end()
    if last < len(text) and (block := _text_block(text[last:])):
        blocks.append(block)
    return blocks
