"""CLI for the structured editor: convert, inspect and publish content."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from structured_editor.api import EditorApi, HttpMediaStore, HttpPersistence
from structured_editor.config import PROFILES
from structured_editor.core.content import content_to_text, text_to_blocks
from structured_editor.core.tree.deserializer import deserialize
from structured_editor.core.tree.extractor import extract
from structured_editor.core.tree.serializer import serialize
from structured_editor.errors import EditorError
from structured_editor.logging_config import configure_logging
from structured_editor.models.content import ParsedContent
from structured_editor.models.profile import EditorProfile
from structured_editor.session import EditingSession

app = typer.Typer(help="Structured editor: convert and publish block content.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def _profile(name: str) -> EditorProfile:
    try:
        return PROFILES[name]
    except KeyError:
        logger.error("Unknown profile {!r}, expected one of {}", name, sorted(PROFILES))
        raise typer.Exit(1) from None


def _read(path: Path) -> str:
    if not path.exists():
        logger.error("File not found: {}", path)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


@app.command(name="to-text")
def to_text(
    path: Path = typer.Argument(..., help="Stored content (block JSON or legacy text)"),
) -> None:
    """Print stored content as marked text."""
    typer.echo(content_to_text(_read(path)))


@app.command(name="to-blocks")
def to_blocks(
    path: Path = typer.Argument(..., help="Marked text file"),
    profile: str = typer.Option("community", "--profile", "-p", help="Editor profile"),
    parent_id: Annotated[
        int | None,
        typer.Option("--parent-id", "-i", help="Owning record id"),
    ] = None,
    collapse: bool = typer.Option(False, "--collapse", "-c", help="Collapse blank lines first"),
    normalize: bool = typer.Option(
        False, "--normalize", "-n", help="Tokenize as free text (trim and cap blank lines)"
    ),
) -> None:
    """Convert marked text into block JSON."""
    prof = _profile(profile)
    text = _read(path)

    if normalize:
        blocks = text_to_blocks(text, parent_id, namespace=prof.namespace)
    else:
        tree = deserialize(text, parent_id, markup=prof.markup)
        if collapse:
            tree = deserialize(serialize(tree), parent_id, markup=prof.markup)
        blocks = extract(tree, parent_id, namespace=prof.namespace)

    typer.echo(json.dumps(ParsedContent(tuple(blocks)).to_dict(), indent=2, ensure_ascii=False))


@app.command()
def show(
    record_id: int = typer.Argument(..., help="Record id"),
    profile: str = typer.Option("community", "--profile", "-p", help="Editor profile"),
) -> None:
    """Fetch a stored record and print its content as marked text."""
    prof = _profile(profile)
    try:
        record = HttpPersistence(EditorApi(), prof).load(record_id)
    except (EditorError, RuntimeError) as e:
        logger.error("Cannot load {} {}: {}", prof.name, record_id, e)
        raise typer.Exit(1) from e
    typer.echo(content_to_text(record.get("content")))


@app.command()
def publish(
    path: Path = typer.Argument(..., help="Marked text file"),
    profile: str = typer.Option("community", "--profile", "-p", help="Editor profile"),
    title: Annotated[str | None, typer.Option("--title", "-t", help="Title")] = None,
    tag: Annotated[list[str] | None, typer.Option("--tag", help="Tag (repeatable)")] = None,
    field: Annotated[
        list[str] | None,
        typer.Option("--field", "-f", help="Extra metadata as key=value (repeatable)"),
    ] = None,
    image: Annotated[
        list[Path] | None,
        typer.Option("--image", help="Image appended to the document (repeatable)"),
    ] = None,
) -> None:
    """Create a new record from a text file and images."""
    prof = _profile(profile)
    text = _read(path)

    api = EditorApi()
    session = EditingSession.new(prof, HttpMediaStore(api, prof), HttpPersistence(api, prof))
    try:
        for item in field or []:
            key, sep, value = item.partition("=")
            if not sep:
                logger.error("Bad --field {!r}, expected key=value", item)
                raise typer.Exit(1)
            session.set_field(key, value)
        if title is not None:
            session.set_title(title)
        for t in tag or []:
            session.add_tag(t)
        session.replace_text(text)
        for image_path in image or []:
            session.new_paragraph()
            session.insert_media(image_path.read_bytes(), image_path.name)
        session.commit()
    except EditorError as e:
        logger.error("Publish failed: {}", e)
        raise typer.Exit(1) from e

    typer.echo(f"Published {prof.name} {session.parent_id}")
