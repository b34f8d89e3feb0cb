"""The live, editable node tree."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from structured_editor.models.content import ParentId


class MediaState(Enum):
    """Display state of a media placeholder."""

    READY = "ready"
    RESOLVING = "resolving"
    FAILED = "failed"


@dataclass(frozen=True)
class PendingMedia:
    """A file picked during editing whose upload has not been committed."""

    ephemeral_id: str
    data: bytes = field(repr=False)
    filename: str

    @property
    def media_id(self) -> str:
        return self.ephemeral_id


@dataclass(frozen=True)
class DurableMedia:
    """A file already stored under a parent record."""

    parent_id: ParentId
    filename: str

    @property
    def media_id(self) -> str:
        return self.filename


MediaRef = PendingMedia | DurableMedia


@dataclass
class Text:
    value: str


@dataclass
class LineBreak:
    pass


@dataclass
class MediaPlaceholder:
    """An embedded image; holds exactly one media reference."""

    ref: MediaRef
    removable: bool = True
    state: MediaState = MediaState.READY
    data: bytes | None = field(default=None, repr=False)

    @property
    def media_id(self) -> str:
        return self.ref.media_id

    @property
    def is_pending(self) -> bool:
        return isinstance(self.ref, PendingMedia)


@dataclass
class Bold:
    children: list["Inline"] = field(default_factory=list)


@dataclass
class Underline:
    children: list["Inline"] = field(default_factory=list)


Inline = Text | LineBreak | MediaPlaceholder | Bold | Underline


@dataclass
class Paragraph:
    """A paragraph-level container; one per Enter press in the editor."""

    children: list[Inline] = field(default_factory=list)


@dataclass
class NodeTree:
    """Ordered top-level paragraphs of a document being edited."""

    paragraphs: list[Paragraph] = field(default_factory=list)

    def placeholders(self) -> Iterator[MediaPlaceholder]:
        """Yield every media placeholder in document order."""
        for paragraph in self.paragraphs:
            yield from _iter_placeholders(paragraph.children)

    def media_count(self) -> int:
        return sum(1 for _ in self.placeholders())

    def last_paragraph(self) -> Paragraph:
        """Return the last paragraph, creating one for an empty tree."""
        if not self.paragraphs:
            self.paragraphs.append(Paragraph())
        return self.paragraphs[-1]

    def remove(self, node: Inline) -> bool:
        """Detach ``node`` (matched by identity) from wherever it lives."""
        for paragraph in self.paragraphs:
            if _remove_from(paragraph.children, node):
                return True
        return False


def _iter_placeholders(children: list[Inline]) -> Iterator[MediaPlaceholder]:
    for child in children:
        if isinstance(child, MediaPlaceholder):
            yield child
        elif isinstance(child, Bold | Underline):
            yield from _iter_placeholders(child.children)


def _remove_from(children: list[Inline], node: Inline) -> bool:
    for i, child in enumerate(children):
        if child is node:
            del children[i]
            return True
        if isinstance(child, Bold | Underline) and _remove_from(child.children, node):
            return True
    return False
