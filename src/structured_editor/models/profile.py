"""Per-call-site parametrization of the content engine."""

from dataclasses import dataclass
from enum import Enum


class Markup(Enum):
    """Inline markup understood by the engine."""

    PLAIN = "plain"
    # Bold as **text**, underline as <u>text</u>.
    JOURNAL = "journal"


@dataclass(frozen=True)
class EditorProfile:
    """Everything that differs between the post and journal editors."""

    name: str
    namespace: str
    resource: str
    markup: Markup = Markup.PLAIN
    tags_field: str = "tags"
    # Appended to the record path when saving edits to an existing record.
    # Freshly created records are always saved with a plain PUT.
    commit_path: str | None = None
    title_field: str | None = None
    metadata_fields: tuple[str, ...] = ()
    required_fields: tuple[str, ...] = ()
