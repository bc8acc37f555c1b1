"""
CLI interface for notekeep.

Usage:
    notekeep new "Grocery List" -b "- milk" -t home
    notekeep list -q grocery -t home
    notekeep show <id>
"""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Notebook
from .config import get_default_store_path
from .logging_config import enable_debug_mode
from .types import Note, Tag


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    if value is not None:
        _store_override = value


def _get_store_override() -> Optional[Path]:
    return _store_override


app = typer.Typer(
    name="notekeep",
    help="Personal notes with tags.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        help="Path to the store directory (default: ~/.notekeep/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Personal notes with tags."""


TagOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--tag", "-t",
        help="Tag label or id (repeatable)"
    )
]


def _get_notebook() -> Notebook:
    return Notebook(_get_store_override())


def _resolve_tag(nb: Notebook, name: str) -> Optional[Tag]:
    """Find a tag by id, then by label (first match)."""
    tag = nb.get_tag(name)
    if tag is not None:
        return tag
    matches = nb.find_tags(name)
    return matches[0] if matches else None


def _resolve_or_create_tags(nb: Notebook, names: list[str]) -> list[Tag]:
    """Resolve tag names, creating a tag for each unknown label."""
    tags = []
    for name in names:
        tag = _resolve_tag(nb, name)
        if tag is None:
            tag = nb.create_tag(name)
        tags.append(tag)
    return tags


def _require_note(nb: Notebook, id: str) -> Note:
    note = nb.get_note(id)
    if note is None:
        typer.echo(f"Error: note not found: {id}", err=True)
        raise typer.Exit(1)
    return note


def _format_note_line(note: Note) -> str:
    labels = " ".join(f"#{tag.label}" for tag in note.tags)
    return f"{note.id}  {note.title}" + (f"  {labels}" if labels else "")


def _format_note_full(note: Note) -> str:
    lines = ["---", f"id: {note.id}", f"title: {note.title}"]
    if note.tags:
        lines.append("tags: [" + ", ".join(tag.label for tag in note.tags) + "]")
    lines.append("---")
    lines.append(note.markdown)
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Notes
# -----------------------------------------------------------------------------

@app.command()
def new(
    title: Annotated[str, typer.Argument(help="Note title")],
    body: Annotated[str, typer.Option(
        "--body", "-b",
        help="Markdown body ('-' reads stdin)"
    )] = "",
    tag: TagOption = None,
):
    """Create a note. Unknown tag labels become new tags."""
    if body == "-":
        body = sys.stdin.read()
    with _get_notebook() as nb:
        tags = _resolve_or_create_tags(nb, tag or [])
        raw = nb.create_note(title, body, tags)
        note = nb.get_note(raw.id)
        if _get_json_output():
            typer.echo(json.dumps(note.to_dict(), ensure_ascii=False))
        else:
            typer.echo(raw.id)


@app.command()
def edit(
    id: Annotated[str, typer.Argument(help="Note id")],
    title: Annotated[Optional[str], typer.Option("--title", help="New title")] = None,
    body: Annotated[Optional[str], typer.Option(
        "--body", "-b",
        help="New markdown body ('-' reads stdin)"
    )] = None,
    tag: TagOption = None,
):
    """Edit a note. Fields not given are kept; --tag replaces all tags."""
    if body == "-":
        body = sys.stdin.read()
    with _get_notebook() as nb:
        note = _require_note(nb, id)
        tags = _resolve_or_create_tags(nb, tag) if tag else list(note.tags)
        nb.update_note(
            id,
            note.title if title is None else title,
            note.markdown if body is None else body,
            tags,
        )


@app.command("rm")
def remove(id: Annotated[str, typer.Argument(help="Note id")]):
    """Delete a note. Unknown ids are ignored."""
    with _get_notebook() as nb:
        nb.delete_note(id)


@app.command()
def show(id: Annotated[str, typer.Argument(help="Note id")]):
    """Show a note with its tags."""
    with _get_notebook() as nb:
        note = _require_note(nb, id)
        if _get_json_output():
            typer.echo(json.dumps(note.to_dict(), ensure_ascii=False))
        else:
            typer.echo(_format_note_full(note))


@app.command("list")
def list_notes(
    title: Annotated[str, typer.Option(
        "--title", "-q",
        help="Title substring (case-insensitive)"
    )] = "",
    tag: TagOption = None,
):
    """
    List notes, optionally filtered.

    \b
    Examples:
        notekeep list                     # All notes
        notekeep list -q grocery          # Title contains 'grocery'
        notekeep list -t home -t urgent   # Notes with both tags
    """
    with _get_notebook() as nb:
        tag_ids = []
        for name in tag or []:
            resolved = _resolve_tag(nb, name)
            # An unknown tag can't be carried by any note
            tag_ids.append(resolved.id if resolved is not None else name)
        results = nb.find(title=title, tag_ids=tag_ids)

        if _get_json_output():
            typer.echo(json.dumps([n.to_dict() for n in results], ensure_ascii=False))
        elif not results:
            typer.echo("No notes.")
        else:
            for note in results:
                typer.echo(_format_note_line(note))


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------

@app.command("tags")
def list_tags():
    """List all tags."""
    with _get_notebook() as nb:
        if _get_json_output():
            typer.echo(json.dumps([t.to_dict() for t in nb.tags], ensure_ascii=False))
        elif not nb.tags:
            typer.echo("No tags.")
        else:
            for t in nb.tags:
                typer.echo(f"{t.id}  {t.label}")


@app.command("tag-add")
def tag_add(label: Annotated[str, typer.Argument(help="Tag label")]):
    """Create a tag."""
    with _get_notebook() as nb:
        typer.echo(nb.create_tag(label).id)


@app.command("tag-rename")
def tag_rename(
    id: Annotated[str, typer.Argument(help="Tag id")],
    label: Annotated[str, typer.Argument(help="New label")],
):
    """Change a tag's label."""
    with _get_notebook() as nb:
        nb.update_tag_label(id, label)


@app.command("tag-rm")
def tag_remove(id: Annotated[str, typer.Argument(help="Tag id")]):
    """Delete a tag. Notes that used it stop showing it."""
    with _get_notebook() as nb:
        nb.delete_tag(id)


# -----------------------------------------------------------------------------
# Export / import
# -----------------------------------------------------------------------------

@app.command("export")
def export_cmd(
    output: Annotated[Optional[Path], typer.Argument(
        help="Output file (default: stdout)"
    )] = None,
):
    """Export all notes and tags as JSON."""
    with _get_notebook() as nb:
        text = json.dumps(nb.export_data(), ensure_ascii=False, indent=2)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Exported to {output}", err=True)


@app.command("import")
def import_cmd(
    source: Annotated[Path, typer.Argument(help="Export file to import")],
    replace: Annotated[bool, typer.Option(
        "--replace",
        help="Replace all notes and tags instead of merging"
    )] = False,
):
    """Import notes and tags from an export file."""
    data = json.loads(source.read_text(encoding="utf-8"))
    with _get_notebook() as nb:
        try:
            stats = nb.import_data(data, mode="replace" if replace else "merge")
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
    if _get_json_output():
        typer.echo(json.dumps(stats))
    else:
        typer.echo(
            f"Imported {stats['notes']} notes, {stats['tags']} tags "
            f"({stats['skipped']} skipped)"
        )


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(
            e, context="notekeep CLI",
            store_path=_get_store_override() or get_default_store_path(),
        )
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
