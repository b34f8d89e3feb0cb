"""Protocols for the engine's external collaborators."""

from typing import Any, Protocol, runtime_checkable

from structured_editor.models.content import Block, ParentId, ParsedContent
from structured_editor.models.tree import PendingMedia


@runtime_checkable
class MediaStoreProtocol(Protocol):
    """Protocol for media stores scoped to a parent record."""

    def store(self, parent_id: ParentId, media: PendingMedia) -> ParsedContent:
        """Upload a file and return the parent's canonical content."""
        ...

    def fetch(self, parent_id: ParentId, filename: str) -> bytes:
        """Download a stored file."""
        ...


@runtime_checkable
class PersistenceProtocol(Protocol):
    """Protocol for the record store.

    ``commit`` must delete every image path that the previously stored blocks
    referenced and the incoming blocks no longer do.
    """

    def create_parent(self, metadata: dict[str, Any]) -> ParentId:
        """Create an empty record and return its id."""
        ...

    def commit(
        self,
        parent_id: ParentId,
        metadata: dict[str, Any],
        blocks: list[Block],
        *,
        created: bool = False,
    ) -> dict[str, Any]:
        """Replace the record's metadata and content, returning the stored record.

        ``created`` is True when the record was created by this same commit.
        """
        ...
