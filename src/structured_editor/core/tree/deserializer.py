"""Rebuild the node tree from marked text, resolving media lazily."""

from collections.abc import Iterable, Mapping

from loguru import logger

from structured_editor.config import UNSAVED_PARENT_ID
from structured_editor.core.tree.markup import token_pattern
from structured_editor.models.content import ParentId
from structured_editor.models.profile import Markup
from structured_editor.models.tree import (
    Bold,
    DurableMedia,
    Inline,
    LineBreak,
    MediaPlaceholder,
    MediaState,
    NodeTree,
    Paragraph,
    PendingMedia,
    Text,
    Underline,
)
from structured_editor.protocols import MediaStoreProtocol


class MediaResolver:
    """Fetch bytes for durable placeholders and swap them in place.

    Placeholders are queued in the ``RESOLVING`` state by the deserializer and
    updated by :meth:`resolve_pending`. Only the placeholder's display state
    changes, so sibling order is never affected. Fetched bytes are cached per
    ``(parent_id, filename)`` and never fetched twice.
    """

    def __init__(self, store: MediaStoreProtocol | None = None) -> None:
        self._store = store
        self._cache: dict[tuple[ParentId, str], bytes] = {}
        self._queue: list[tuple[MediaPlaceholder, DurableMedia]] = []

    @property
    def queued(self) -> int:
        return len(self._queue)

    def cached(self, parent_id: ParentId, filename: str) -> bytes | None:
        return self._cache.get((parent_id, filename))

    def remember(self, parent_id: ParentId, filename: str, data: bytes) -> None:
        """Seed the cache, e.g. with the local bytes of a just-committed upload."""
        self._cache[(parent_id, filename)] = data

    def request(self, placeholder: MediaPlaceholder) -> None:
        """Show ``placeholder`` as resolving, or ready at once on a cache hit."""
        ref = placeholder.ref
        if not isinstance(ref, DurableMedia):
            msg = f"Only durable media can be resolved, got {ref!r}"
            raise TypeError(msg)

        data = self.cached(ref.parent_id, ref.filename)
        if data is not None:
            placeholder.data = data
            placeholder.state = MediaState.READY
            return

        placeholder.state = MediaState.RESOLVING
        self._queue.append((placeholder, ref))

    def prune(self, live: Iterable[MediaPlaceholder]) -> None:
        """Drop queued placeholders that are no longer part of the document."""
        keep = {id(p) for p in live}
        self._queue = [item for item in self._queue if id(item[0]) in keep]

    def resolve_pending(self) -> int:
        """Fetch every queued placeholder. Returns how many became ready.

        A failed fetch leaves the placeholder permanently ``FAILED``; it is
        logged, never raised.
        """
        queue, self._queue = self._queue, []
        resolved = 0
        for placeholder, ref in queue:
            if self._resolve_one(placeholder, ref):
                resolved += 1
        return resolved

    def _resolve_one(self, placeholder: MediaPlaceholder, ref: DurableMedia) -> bool:
        key = (ref.parent_id, ref.filename)

        data = self._cache.get(key)
        if data is None:
            if self._store is None:
                logger.warning("No media store to resolve {!r}", ref.filename)
                placeholder.state = MediaState.FAILED
                return False
            try:
                data = self._store.fetch(ref.parent_id, ref.filename)
            except Exception:
                logger.opt(exception=True).warning(
                    "Failed to load media {!r} of parent {!r}", ref.filename, ref.parent_id
                )
                placeholder.state = MediaState.FAILED
                return False
            self._cache[key] = data

        placeholder.data = data
        placeholder.state = MediaState.READY
        return True


class _Parser:
    def __init__(
        self,
        parent_id: ParentId | None,
        markup: Markup,
        pending: Mapping[str, PendingMedia],
        resolver: MediaResolver | None,
    ) -> None:
        self.parent_id = parent_id
        self.pattern = token_pattern(markup)
        self.pending = pending
        self.resolver = resolver

    def parse(self, text: str) -> list[Inline]:
        nodes: list[Inline] = []
        last = 0
        for m in self.pattern.finditer(text):
            _append_text(nodes, text[last : m.start()])
            kind = m.lastgroup
            if kind == "media":
                nodes.append(self.placeholder(m.group("media")))
            elif kind == "bold":
                nodes.append(Bold(self.parse(m.group("bold"))))
            else:
                nodes.append(Underline(self.parse(m.group("underline"))))
            last = m.end()
        _append_text(nodes, text[last:])
        return nodes

    def placeholder(self, media_id: str) -> MediaPlaceholder:
        pending = self.pending.get(media_id)
        if pending is not None:
            # Local preview, no network.
            return MediaPlaceholder(ref=pending, data=pending.data)

        if self.parent_id is None:
            logger.warning("Media {!r} is neither pending nor stored", media_id)
            ref = DurableMedia(parent_id=UNSAVED_PARENT_ID, filename=media_id)
            return MediaPlaceholder(ref=ref, state=MediaState.FAILED)

        placeholder = MediaPlaceholder(
            ref=DurableMedia(parent_id=self.parent_id, filename=media_id),
            state=MediaState.RESOLVING,
        )
        if self.resolver is not None:
            self.resolver.request(placeholder)
        return placeholder


def _append_text(nodes: list[Inline], raw: str) -> None:
    parts = raw.split("\n")
    for i, part in enumerate(parts):
        if part:
            nodes.append(Text(part))
        if i < len(parts) - 1:
            nodes.append(LineBreak())


def deserialize(
    text: str,
    parent_id: ParentId | None,
    *,
    markup: Markup = Markup.PLAIN,
    pending: Mapping[str, PendingMedia] | None = None,
    resolver: MediaResolver | None = None,
    split_blocks: bool = True,
) -> NodeTree:
    """Parse marked text into a node tree.

    Args:
        text: Marked text, as produced by the serializer or ``blocks_to_text``.
        parent_id: Record owning durable media, or None for an unsaved document.
        markup: Inline markup variant; only the journal variant knows bold/underline.
        pending: Local uploads by ephemeral id; matching tokens use their bytes.
        resolver: Receives durable placeholders for asynchronous loading.
        split_blocks: One paragraph per line when True, otherwise a single
            paragraph with explicit line breaks.

    Returns:
        The node tree. Empty text gives an empty tree.
    """
    if not text:
        return NodeTree()

    parser = _Parser(parent_id, markup, pending or {}, resolver)
    inline = parser.parse(text)

    if not split_blocks:
        return NodeTree([Paragraph(inline)])

    paragraphs = [Paragraph()]
    for node in inline:
        if isinstance(node, LineBreak):
            paragraphs.append(Paragraph())
        else:
            paragraphs[-1].children.append(node)
    return NodeTree(paragraphs)
