"""Persisted content models: blocks, documents and edit snapshots."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TextBlock:
    """A run of literal text, newlines included."""

    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "content": self.content}


@dataclass(frozen=True)
class ImageBlock:
    """A reference to stored media: ``<namespace>/<parent_id>/<filename>``."""

    path: str

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "image", "path": self.path}


Block = TextBlock | ImageBlock

ParentId = int | str


def image_path(namespace: str, parent_id: ParentId, filename: str) -> str:
    """Build the storage path of a media file."""
    return f"{namespace}/{parent_id}/{filename}"


@dataclass(frozen=True)
class ParsedContent:
    """The unit exchanged with the persistence layer."""

    blocks: tuple[Block, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"blocks": [b.to_dict() for b in self.blocks]}

    @property
    def image_filenames(self) -> tuple[str, ...]:
        return tuple(b.filename for b in self.blocks if isinstance(b, ImageBlock))


@dataclass(frozen=True)
class Snapshot:
    """Document state captured when edit mode is entered."""

    metadata: dict[str, Any] = field(default_factory=dict)
    tags: tuple[str, ...] = ()
    blocks: tuple[Block, ...] = ()
