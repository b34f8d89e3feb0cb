"""Render the node tree as the linear marked-text mirror."""

import io

from structured_editor.core.tree.markup import flatten
from structured_editor.models.tree import NodeTree


def serialize(tree: NodeTree) -> str:
    """Convert a node tree to marked text, collapsing runs of empty paragraphs.

    Every paragraph after the first is preceded by one newline, except when it
    and the paragraph before it are both empty. Several empty paragraphs in a
    row therefore leave a single blank line, while one intentional blank line
    between two paragraphs survives.

    The conversion is intentionally lossy: ``serialize`` does not round-trip
    with the uncollapsed form produced by the block extractor.
    """
    out = io.StringIO()
    previous_was_empty = False

    for index, paragraph in enumerate(tree.paragraphs):
        content = flatten(paragraph.children)
        is_empty = not content.strip()

        if index > 0 and (not previous_was_empty or not is_empty):
            out.write("\n")
        if not is_empty:
            out.write(content)

        previous_was_empty = is_empty

    return out.getvalue().strip("\r\n")


def byte_length(tree: NodeTree) -> int:
    """UTF-8 size of the serialized mirror, used for length validation."""
    return len(serialize(tree).encode("utf-8"))
