"""Decide whether an edited document differs from its snapshot."""

from collections.abc import Collection, Iterable, Mapping
from typing import Any

from structured_editor.core.tree.extractor import extract
from structured_editor.models.content import ParentId, Snapshot
from structured_editor.models.tree import NodeTree, PendingMedia


def is_dirty(
    snapshot: Snapshot,
    tree: NodeTree,
    pending_uploads: Mapping[str, PendingMedia],
    pending_deletions: Collection[str],
    *,
    metadata: Mapping[str, Any],
    tags: Iterable[str],
    parent_id: ParentId | None,
    namespace: str,
) -> bool:
    """Return True if committing would change anything.

    Pending uploads or deletions count as unsaved changes even when the
    extracted blocks match the snapshot.
    """
    if pending_uploads or pending_deletions:
        return True
    if dict(metadata) != snapshot.metadata:
        return True
    if sorted(tags) != sorted(snapshot.tags):
        return True
    return tuple(extract(tree, parent_id, namespace=namespace)) != snapshot.blocks
