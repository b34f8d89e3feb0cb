"""Editing sessions: one document being composed or edited."""

import time
import uuid
from typing import Any

from loguru import logger

from structured_editor.config import (
    EPHEMERAL_PREFIX,
    MAX_MEDIA_BYTES,
    MAX_MEDIA_PER_DOCUMENT,
    MAX_TAGS,
    MAX_TITLE_BYTES,
)
from structured_editor.core.content import blocks_to_text, content_to_text
from structured_editor.core.tree.deserializer import MediaResolver, deserialize
from structured_editor.core.tree.extractor import extract
from structured_editor.core.tree.serializer import serialize
from structured_editor.core.write.changes import is_dirty
from structured_editor.core.write.reconciler import MediaReconciler, Reconciliation
from structured_editor.errors import ValidationError
from structured_editor.models.content import Block, ParentId, Snapshot
from structured_editor.models.profile import EditorProfile, Markup
from structured_editor.models.tree import (
    Bold,
    DurableMedia,
    LineBreak,
    MediaPlaceholder,
    MediaState,
    NodeTree,
    Paragraph,
    PendingMedia,
    Text,
    Underline,
)
from structured_editor.protocols import MediaStoreProtocol, PersistenceProtocol


def new_ephemeral_id() -> str:
    """Generate a local media id: ``temp_<ms timestamp>_<random>``."""
    return f"{EPHEMERAL_PREFIX}{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class EditingSession:
    """Own the tree, pending media and snapshot of one document.

    The host binds user input to the mutation methods and supplies the media
    store and persistence adapters; everything else lives here. ``text`` is
    the serialized mirror and is refreshed after every mutation.
    """

    def __init__(
        self,
        profile: EditorProfile,
        store: MediaStoreProtocol,
        persistence: PersistenceProtocol,
        *,
        parent_id: ParentId | None = None,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | tuple[str, ...] = (),
        text: str = "",
    ) -> None:
        self.profile = profile
        self.parent_id = parent_id
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.tags: list[str] = list(tags)
        self.resolver = MediaResolver(store)
        self.pending_uploads: dict[str, PendingMedia] = {}
        self.pending_deletions: set[str] = set()
        self._persistence = persistence
        self._reconciler = MediaReconciler(store, persistence, namespace=profile.namespace)

        self.tree = self._load_tree(text)
        self.snapshot = self._capture(self._extract())
        self.text = serialize(self.tree)

    @classmethod
    def new(
        cls,
        profile: EditorProfile,
        store: MediaStoreProtocol,
        persistence: PersistenceProtocol,
        *,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | tuple[str, ...] = (),
    ) -> "EditingSession":
        """Start composing a document that has no record yet."""
        return cls(profile, store, persistence, metadata=metadata, tags=tags)

    @classmethod
    def open(
        cls,
        profile: EditorProfile,
        store: MediaStoreProtocol,
        persistence: PersistenceProtocol,
        record: dict[str, Any],
    ) -> "EditingSession":
        """Enter edit mode for a stored record."""
        metadata = {k: record[k] for k in profile.metadata_fields if k in record}
        session = cls(
            profile,
            store,
            persistence,
            parent_id=record["id"],
            metadata=metadata,
            tags=record.get(profile.tags_field) or (),
            text=content_to_text(record.get("content")),
        )
        logger.debug(
            "Opened {} {!r}: {} media to resolve",
            profile.name,
            record["id"],
            session.resolver.queued,
        )
        return session

    # -- tree mutations ------------------------------------------------------

    def type_text(self, value: str) -> None:
        """Append typed text; each newline starts a new paragraph."""
        lines = value.split("\n")
        for i, line in enumerate(lines):
            if i:
                self.tree.paragraphs.append(Paragraph())
            if line:
                self.tree.last_paragraph().children.append(Text(line))
        self._refresh()

    def new_paragraph(self) -> None:
        self.tree.paragraphs.append(Paragraph())
        self._refresh()

    def insert_line_break(self) -> None:
        self.tree.last_paragraph().children.append(LineBreak())
        self._refresh()

    def insert_bold(self, value: str) -> None:
        self._require_journal("bold")
        self.tree.last_paragraph().children.append(Bold([Text(value)]))
        self._refresh()

    def insert_underline(self, value: str) -> None:
        self._require_journal("underline")
        self.tree.last_paragraph().children.append(Underline([Text(value)]))
        self._refresh()

    def replace_text(self, text: str) -> None:
        """Replace the whole document with parsed marked text."""
        tree = self._load_tree(text)
        if tree.media_count() > MAX_MEDIA_PER_DOCUMENT:
            self.resolver.prune(self.tree.placeholders())
            msg = f"At most {MAX_MEDIA_PER_DOCUMENT} images per document"
            raise ValidationError(msg)
        self.tree = tree
        kept = {p.media_id for p in tree.placeholders() if p.is_pending}
        for ephemeral_id in [e for e in self.pending_uploads if e not in kept]:
            del self.pending_uploads[ephemeral_id]
        self._refresh()

    def insert_media(
        self, data: bytes, filename: str, *, paragraph: int | None = None
    ) -> MediaPlaceholder:
        """Insert a local file as a pending placeholder.

        Raises:
            ValidationError: The file is too large or the document already
                holds the maximum number of images. The tree is unchanged.
        """
        if len(data) > MAX_MEDIA_BYTES:
            msg = f"Image {filename!r} is {len(data)} bytes, the limit is {MAX_MEDIA_BYTES}"
            raise ValidationError(msg)
        if self.tree.media_count() >= MAX_MEDIA_PER_DOCUMENT:
            msg = f"At most {MAX_MEDIA_PER_DOCUMENT} images per document"
            raise ValidationError(msg)

        media = PendingMedia(ephemeral_id=new_ephemeral_id(), data=data, filename=filename)
        placeholder = MediaPlaceholder(ref=media, data=data)
        if paragraph is None:
            target = self.tree.last_paragraph()
        else:
            target = self.tree.paragraphs[paragraph]
        target.children.append(placeholder)
        self.pending_uploads[media.ephemeral_id] = media
        self._refresh()
        return placeholder

    def remove_media(self, placeholder: MediaPlaceholder) -> None:
        """Remove a placeholder; stored files are only queued for deletion."""
        if not placeholder.removable:
            msg = f"Media {placeholder.media_id!r} cannot be removed"
            raise ValidationError(msg)
        if not self.tree.remove(placeholder):
            msg = f"Media {placeholder.media_id!r} is not part of this document"
            raise ValueError(msg)

        ref = placeholder.ref
        if isinstance(ref, PendingMedia):
            self.pending_uploads.pop(ref.ephemeral_id, None)
        else:
            self.pending_deletions.add(ref.filename)
        self._refresh()

    def resolve_media(self) -> int:
        """Load the bytes of stored images shown as resolving."""
        return self.resolver.resolve_pending()

    # -- metadata ------------------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        if name == self.profile.title_field:
            self.set_title(value)
            return
        self.metadata[name] = value

    def set_title(self, title: str) -> None:
        if len(title.encode("utf-8")) > MAX_TITLE_BYTES:
            msg = f"Title must be at most {MAX_TITLE_BYTES} bytes"
            raise ValidationError(msg)
        self.metadata[self.profile.title_field or "title"] = title

    def add_tag(self, tag: str) -> bool:
        """Add a tag; returns False for blanks and duplicates."""
        tag = tag.strip().lstrip("#")
        if not tag or tag in self.tags:
            return False
        if len(self.tags) >= MAX_TAGS:
            msg = f"At most {MAX_TAGS} tags"
            raise ValidationError(msg)
        self.tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    # -- lifecycle -----------------------------------------------------------

    def is_dirty(self) -> bool:
        return is_dirty(
            self.snapshot,
            self.tree,
            self.pending_uploads,
            self.pending_deletions,
            metadata=self.metadata,
            tags=self.tags,
            parent_id=self.parent_id,
            namespace=self.profile.namespace,
        )

    def validate(self) -> None:
        """Raise ValidationError for the first required field left blank."""
        for name in self.profile.required_fields:
            if not str(self.metadata.get(name) or "").strip():
                msg = f"{name.capitalize()} is required"
                raise ValidationError(msg)

    def commit(self) -> dict[str, Any] | None:
        """Upload pending media and persist the document.

        Returns the stored record, or None when a saved document has no changes.
        A document that was never saved is always committed. On any error the
        session is left as it was so the commit can be retried.
        """
        if self.parent_id is not None and not self.is_dirty():
            logger.info("No changes to commit")
            return None
        self.validate()

        # Edits made after this point are not part of the commit.
        blocks = self._extract()
        pending = dict(self.pending_uploads)
        metadata = {**self.metadata, self.profile.tags_field: list(self.tags)}

        result = self._reconciler.reconcile(pending, blocks, self.parent_id, metadata=metadata)
        record = self._persistence.commit(
            result.parent_id, metadata, result.blocks, created=result.created_parent
        )
        logger.info(
            "Committed {} {!r}: {} blocks, {} uploads, {} removals",
            self.profile.name,
            result.parent_id,
            len(result.blocks),
            len(result.mapping),
            len(self.pending_deletions),
        )

        self._adopt(result, pending)
        return record

    def cancel(self) -> None:
        """Discard unsaved edits; local uploads are simply dropped."""
        self.pending_uploads.clear()
        self.pending_deletions.clear()
        self.metadata = dict(self.snapshot.metadata)
        self.tags = list(self.snapshot.tags)
        self.tree = self._load_tree(blocks_to_text(self.snapshot.blocks))
        self._refresh()

    # -- internals -----------------------------------------------------------

    def _adopt(self, result: Reconciliation, pending: dict[str, PendingMedia]) -> None:
        self.parent_id = result.parent_id
        for placeholder in self.tree.placeholders():
            ref = placeholder.ref
            if not isinstance(ref, PendingMedia) or ref.ephemeral_id not in result.mapping:
                continue
            filename = result.mapping[ref.ephemeral_id]
            placeholder.ref = DurableMedia(parent_id=result.parent_id, filename=filename)
            placeholder.state = MediaState.READY
            self.resolver.remember(result.parent_id, filename, ref.data)

        for ephemeral_id in pending:
            self.pending_uploads.pop(ephemeral_id, None)
        self.pending_deletions.clear()
        self.snapshot = self._capture(result.blocks)
        self._refresh()

    def _capture(self, blocks: list[Block]) -> Snapshot:
        return Snapshot(metadata=dict(self.metadata), tags=tuple(self.tags), blocks=tuple(blocks))

    def _extract(self) -> list[Block]:
        return extract(self.tree, self.parent_id, namespace=self.profile.namespace)

    def _load_tree(self, text: str) -> NodeTree:
        return deserialize(
            text,
            self.parent_id,
            markup=self.profile.markup,
            pending=self.pending_uploads,
            resolver=self.resolver,
        )

    def _refresh(self) -> None:
        self.resolver.prune(self.tree.placeholders())
        self.text = serialize(self.tree)

    def _require_journal(self, what: str) -> None:
        if self.profile.markup is not Markup.JOURNAL:
            msg = f"{what} is not available in the {self.profile.name} editor"
            raise ValidationError(msg)
