"""Inline token grammar shared by the serializer, deserializer and extractor.

Media is written as ``[image]{<id>}``. In the journal variant bold is
markdown-style ``**text**`` while underline is tag-style ``<u>text</u>``; both
conventions are kept as-is so already stored journal entries still parse.
"""

import re
from collections.abc import Iterator

from structured_editor.models.profile import Markup
from structured_editor.models.tree import Bold, Inline, LineBreak, MediaPlaceholder, Text, Underline

BOLD_OPEN = BOLD_CLOSE = "**"
UNDERLINE_OPEN = "<u>"
UNDERLINE_CLOSE = "</u>"

MEDIA_TOKEN_RE = re.compile(r"\[image\]\{(?P<media>[^}]+)\}")

JOURNAL_TOKEN_RE = re.compile(
    r"\[image\]\{(?P<media>[^}]+)\}|\*\*(?P<bold>.+?)\*\*|<u>(?P<underline>.+?)</u>",
    re.DOTALL,
)


def token_pattern(markup: Markup) -> re.Pattern[str]:
    return JOURNAL_TOKEN_RE if markup is Markup.JOURNAL else MEDIA_TOKEN_RE


def media_token(media_id: str) -> str:
    return "[image]{" + media_id + "}"


def iter_segments(children: list[Inline]) -> Iterator[str | MediaPlaceholder]:
    """Flatten inline nodes into text pieces and media placeholders."""
    for child in children:
        if isinstance(child, Text):
            yield child.value
        elif isinstance(child, LineBreak):
            yield "\n"
        elif isinstance(child, MediaPlaceholder):
            yield child
        elif isinstance(child, Bold):
            yield BOLD_OPEN
            yield from iter_segments(child.children)
            yield BOLD_CLOSE
        elif isinstance(child, Underline):
            yield UNDERLINE_OPEN
            yield from iter_segments(child.children)
            yield UNDERLINE_CLOSE


def flatten(children: list[Inline]) -> str:
    """Render inline nodes as marked text, media included as tokens."""
    return "".join(
        media_token(s.media_id) if isinstance(s, MediaPlaceholder) else s
        for s in iter_segments(children)
    )
