"""Structured content engine for the post and journal editors."""

from structured_editor.core.content import blocks_to_text, content_to_text, load_content
from structured_editor.core.tree.deserializer import MediaResolver, deserialize
from structured_editor.core.tree.extractor import extract
from structured_editor.core.tree.serializer import serialize
from structured_editor.core.write.changes import is_dirty
from structured_editor.core.write.reconciler import MediaReconciler
from structured_editor.protocols import MediaStoreProtocol, PersistenceProtocol
from structured_editor.session import EditingSession

__all__ = [
    "EditingSession",
    "MediaReconciler",
    "MediaResolver",
    "MediaStoreProtocol",
    "PersistenceProtocol",
    "blocks_to_text",
    "content_to_text",
    "deserialize",
    "extract",
    "is_dirty",
    "load_content",
    "serialize",
]
