"""Map ephemeral upload ids to durable filenames while committing."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from structured_editor.config import EPHEMERAL_PREFIX
from structured_editor.errors import FilenameCollisionError, ReconciliationError, UploadError
from structured_editor.models.content import (
    Block,
    ImageBlock,
    ParentId,
    ParsedContent,
    image_path,
)
from structured_editor.models.tree import PendingMedia
from structured_editor.protocols import MediaStoreProtocol, PersistenceProtocol


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of a successful reconciliation."""

    parent_id: ParentId
    blocks: list[Block]
    mapping: dict[str, str] = field(default_factory=dict)
    created_parent: bool = False


def infer_new_filename(content: ParsedContent) -> str | None:
    """Filename of the most recently appended image block.

    The store does not report the name it assigned to an upload, so the last
    image of its canonical content is taken to be the one just stored.
    """
    for block in reversed(content.blocks):
        if isinstance(block, ImageBlock) and block.filename:
            return block.filename
    return None


def is_ephemeral(filename: str, pending: Mapping[str, PendingMedia]) -> bool:
    return filename in pending or filename.startswith(EPHEMERAL_PREFIX)


class MediaReconciler:
    """Upload pending media and rewrite the blocks that reference it."""

    def __init__(
        self,
        store: MediaStoreProtocol,
        persistence: PersistenceProtocol,
        *,
        namespace: str,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self.namespace = namespace

    def reconcile(
        self,
        pending: Mapping[str, PendingMedia],
        blocks: Sequence[Block],
        parent_id: ParentId | None,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> Reconciliation:
        """Upload ``pending`` in insertion order and rewrite ephemeral image paths.

        Args:
            pending: Local uploads keyed by ephemeral id, in insertion order.
            blocks: Extracted blocks; not modified.
            parent_id: Owning record, or None to create it first.
            metadata: Fields for the record created when ``parent_id`` is None.

        Raises:
            UploadError: An upload failed; later uploads were not attempted.
            ReconciliationError: An ephemeral id was left without a durable filename.
        """
        created = False
        if parent_id is None:
            parent_id = self._persistence.create_parent(dict(metadata or {}))
            created = True
            logger.debug("Created parent {!r} before uploading", parent_id)

        mapping = self._upload_all(pending, parent_id)

        referenced = [
            b.filename
            for b in blocks
            if isinstance(b, ImageBlock) and is_ephemeral(b.filename, pending)
        ]
        unmapped = tuple(dict.fromkeys(f for f in referenced if f not in mapping))
        if unmapped:
            msg = f"No durable filename for ephemeral media {list(unmapped)!r}"
            raise ReconciliationError(msg, unmapped=unmapped)

        rewritten: list[Block] = []
        for block in blocks:
            if isinstance(block, ImageBlock) and block.filename in mapping:
                durable = mapping[block.filename]
                block = ImageBlock(image_path(self.namespace, parent_id, durable))
            rewritten.append(block)

        return Reconciliation(
            parent_id=parent_id, blocks=rewritten, mapping=mapping, created_parent=created
        )

    def _upload_all(
        self, pending: Mapping[str, PendingMedia], parent_id: ParentId
    ) -> dict[str, str]:
        # One upload at a time; each response must add exactly one image.
        mapping: dict[str, str] = {}
        for ephemeral_id, media in pending.items():
            logger.debug(
                "Uploading {!r} ({} bytes) as {!r}", media.filename, len(media.data), ephemeral_id
            )
            try:
                canonical = self._store.store(parent_id, media)
            except Exception as e:
                msg = f"Upload of {media.filename!r} failed: {e}"
                raise UploadError(msg, ephemeral_id=ephemeral_id) from e

            filename = infer_new_filename(canonical)
            if filename is None:
                logger.warning("Store response for {!r} holds no image", ephemeral_id)
                continue
            if filename in mapping.values():
                msg = (
                    f"Inferred filename {filename!r} for {ephemeral_id!r} "
                    "was already assigned to an earlier upload"
                )
                raise FilenameCollisionError(msg, unmapped=(ephemeral_id,))
            mapping[ephemeral_id] = filename

        return mapping
