"""Exceptions raised by the content engine and its adapters."""


class EditorError(Exception):
    """Base class for all structured editor errors."""


class ValidationError(EditorError):
    """Input rejected at intake; the tree is left unchanged."""


class UploadError(EditorError):
    """A media upload failed; the remaining uploads of the batch were abandoned."""

    def __init__(self, message: str, *, ephemeral_id: str) -> None:
        super().__init__(message)
        self.ephemeral_id = ephemeral_id


class ReconciliationError(EditorError):
    """Ephemeral media ids could not be mapped to durable filenames."""

    def __init__(self, message: str, *, unmapped: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.unmapped = unmapped


class FilenameCollisionError(ReconciliationError):
    """Two uploads were inferred to have produced the same durable filename."""


class ParseError(EditorError):
    """Stored content is not a valid block document."""


class ApiError(EditorError):
    """The backend answered with an error envelope."""
