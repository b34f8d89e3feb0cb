"""Configuration constants for the structured editor."""

import os
from pathlib import Path

from structured_editor.models.profile import EditorProfile, Markup

# Intake limits. Enforced at insertion time, not configurable.
MAX_MEDIA_PER_DOCUMENT: int = 5
MAX_MEDIA_BYTES: int = 5 * 1024 * 1024
MAX_TITLE_BYTES: int = 100
MAX_TAGS: int = 5

# Locally generated media ids look like temp_<ms timestamp>_<random>.
EPHEMERAL_PREFIX: str = "temp_"

# Parent segment used in image paths before a document has been created.
UNSAVED_PARENT_ID: int = 0

# Backend location. The environment variable wins over the default.
API_BASE_URL: str = os.environ.get("STRUCTURED_EDITOR_API_URL", "http://localhost:8080/api")

# Environment variable holding an access token; checked before the token files.
API_TOKEN_ENV: str = "STRUCTURED_EDITOR_TOKEN"

# Access token location. First file found is used.
API_TOKEN_FILES: list[Path] = [
    Path("~/.config/structured-editor-token.txt").expanduser(),
    Path("~/.config/secret/structured-editor-token.txt").expanduser(),
]

COMMUNITY_PROFILE = EditorProfile(
    name="community",
    namespace="@communityImage",
    resource="communities",
    markup=Markup.PLAIN,
    tags_field="hashtags",
    commit_path="update-content",
    title_field="title",
    metadata_fields=("category", "title"),
    required_fields=("title", "category"),
)

DIARY_PROFILE = EditorProfile(
    name="diary",
    namespace="@diaryImage",
    resource="diaries",
    markup=Markup.JOURNAL,
    tags_field="tags",
    metadata_fields=("tradingHistoryId",),
)

PROFILES: dict[str, EditorProfile] = {p.name: p for p in (COMMUNITY_PROFILE, DIARY_PROFILE)}
