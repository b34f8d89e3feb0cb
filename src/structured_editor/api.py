"""Dashboard REST API client and the adapters built on it."""

import os
from typing import Any
from urllib.parse import quote

import requests
from loguru import logger

from structured_editor.config import API_BASE_URL, API_TOKEN_ENV, API_TOKEN_FILES
from structured_editor.core.content import dump_content, load_content
from structured_editor.errors import ApiError
from structured_editor.models.content import Block, ParentId, ParsedContent
from structured_editor.models.profile import EditorProfile
from structured_editor.models.tree import PendingMedia


def _read_token() -> str:
    token = os.environ.get(API_TOKEN_ENV)
    if token:
        return token.strip()
    for token_path in API_TOKEN_FILES:
        try:
            return token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            pass
    msg = f"Cannot find access token, set {API_TOKEN_ENV} or create one of {API_TOKEN_FILES!r}"
    raise RuntimeError(msg)


def _error_message(rv: Any) -> str | None:
    if not isinstance(rv, dict):
        return None
    error = rv.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    return rv.get("message") or error


class EditorApi:
    """Encapsulated dashboard API; unwraps the ``{success, data}`` envelope."""

    def __init__(self, *, base_url: str = API_BASE_URL, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.sess = requests.Session()
        self.api_token = token if token is not None else _read_token()
        self.sess.headers["Authorization"] = f"Bearer {self.api_token}"
        logger.debug("API ready: base url {!r}", self.base_url)

    def call(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Invoke an endpoint and return the envelope's ``data``."""
        logger.debug("Making request: {} {!r}", method, path)
        r = self.sess.request(method, f"{self.base_url}/{path}", json=body, files=files)
        try:
            rv = r.json()
        except ValueError as e:
            msg = f"Cannot parse response of {method} {path!r} ({r.status_code})"
            raise ApiError(msg) from e

        if not r.ok or (isinstance(rv, dict) and rv.get("success") is False):
            reason = _error_message(rv)
            msg = f"API call failed: ({method} {path!r}) -> ({r.status_code}, {reason!r})"
            raise ApiError(msg)
        return rv.get("data") if isinstance(rv, dict) else rv

    def download(self, path: str) -> bytes:
        """GET raw bytes."""
        r = self.sess.get(f"{self.base_url}/{path}")
        r.raise_for_status()
        return r.content


class HttpMediaStore:
    """Media store backed by the ``<resource>/<id>/images`` endpoints."""

    def __init__(self, api: EditorApi, profile: EditorProfile) -> None:
        self.api = api
        self.profile = profile

    def store(self, parent_id: ParentId, media: PendingMedia) -> ParsedContent:
        record = self.api.call(
            "POST",
            f"{self.profile.resource}/{parent_id}/images",
            files={"file": (media.filename, media.data)},
        )
        content = (record or {}).get("content")
        return load_content(content) if content else ParsedContent()

    def fetch(self, parent_id: ParentId, filename: str) -> bytes:
        return self.api.download(
            f"{self.profile.resource}/{parent_id}/images/{quote(filename, safe='')}"
        )


class HttpPersistence:
    """Record store backed by the resource's CRUD endpoints."""

    def __init__(self, api: EditorApi, profile: EditorProfile) -> None:
        self.api = api
        self.profile = profile

    def load(self, parent_id: ParentId) -> dict[str, Any]:
        record: dict[str, Any] = self.api.call("GET", f"{self.profile.resource}/{parent_id}")
        return record

    def create_parent(self, metadata: dict[str, Any]) -> ParentId:
        record = self.api.call("POST", self.profile.resource, body=metadata)
        if not record or "id" not in record:
            msg = f"Create {self.profile.resource!r} returned no id: {record!r}"
            raise ApiError(msg)
        parent_id: ParentId = record["id"]
        return parent_id

    def commit(
        self,
        parent_id: ParentId,
        metadata: dict[str, Any],
        blocks: list[Block],
        *,
        created: bool = False,
    ) -> dict[str, Any]:
        # The backend deletes stored images the new blocks no longer reference.
        path = f"{self.profile.resource}/{parent_id}"
        if self.profile.commit_path and not created:
            path += f"/{self.profile.commit_path}"
        record: dict[str, Any] = self.api.call(
            "PUT", path, body={**metadata, "content": dump_content(blocks)}
        )
        return record
