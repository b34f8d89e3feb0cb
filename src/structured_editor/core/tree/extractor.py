"""Extract the storage-ready block list from a node tree."""

from structured_editor.config import UNSAVED_PARENT_ID
from structured_editor.core.tree.markup import iter_segments
from structured_editor.models.content import Block, ImageBlock, ParentId, TextBlock, image_path
from structured_editor.models.tree import MediaPlaceholder, NodeTree


def extract(tree: NodeTree, parent_id: ParentId | None, *, namespace: str) -> list[Block]:
    """Convert a node tree to persisted blocks.

    Unlike ``serialize`` nothing is collapsed: every paragraph boundary becomes
    exactly one newline. Each media placeholder becomes one image block using
    whichever id its reference currently holds, ephemeral or durable.

    Args:
        tree: The live document.
        parent_id: Owning record, or None before the document is first saved.
        namespace: Storage namespace prefix of image paths.

    Returns:
        Blocks in render order.
    """
    pieces: list[str | MediaPlaceholder] = []
    for index, paragraph in enumerate(tree.paragraphs):
        if index > 0:
            _push(pieces, "\n")
        for segment in iter_segments(paragraph.children):
            _push(pieces, segment)

    # Leading and trailing newlines of the whole document are dropped.
    if pieces and isinstance(pieces[0], str):
        pieces[0] = pieces[0].lstrip("\r\n")
    if pieces and isinstance(pieces[-1], str):
        pieces[-1] = pieces[-1].rstrip("\r\n")

    path_parent = UNSAVED_PARENT_ID if parent_id is None else parent_id
    blocks: list[Block] = []
    for piece in pieces:
        if isinstance(piece, MediaPlaceholder):
            blocks.append(ImageBlock(image_path(namespace, path_parent, piece.media_id)))
        elif piece.strip(" \t") or "\n" in piece:
            blocks.append(TextBlock(piece))
    return blocks


def _push(pieces: list[str | MediaPlaceholder], segment: str | MediaPlaceholder) -> None:
    if isinstance(segment, str) and pieces and isinstance(pieces[-1], str):
        pieces[-1] += segment
    else:
        pieces.append(segment)
