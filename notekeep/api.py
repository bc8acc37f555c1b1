"""
Core API for notekeep.

Notebook is the top-level application object: it owns the slot storage,
the note/tag repository and the cached projection, for the lifetime of
the process.

Example:
    with Notebook() as nb:
        work = nb.create_tag("work")
        nb.create_note("Standup", "- shipped the importer", [work])
        for note in nb.find(title="stand", tag_ids=[work.id]):
            print(note)
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from .config import StoreConfig, get_default_store_path, load_or_create_config
from .logging_config import configure_ops_log, remove_ops_log
from .protocol import SlotStorage
from .repository import NoteRepository
from .slot_store import SlotStore
from .types import Note, RawNote, Tag, decode_notes, decode_tags, utc_now
from .views import ProjectionCache, filter_notes, project

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "notekeep-export"
EXPORT_VERSION = 1


class Notebook:
    """
    Notes and tags with durable storage and filtered views.

    Mutations are applied and persisted one at a time, in call order.
    """

    def __init__(
        self,
        store_path: Optional[str | Path] = None,
        *,
        config: Optional[StoreConfig] = None,
        storage: Optional[SlotStorage] = None,
    ) -> None:
        """
        Open (or create) a note store.

        Args:
            store_path: Store directory. Defaults to ~/.notekeep.
            config: Pre-loaded StoreConfig (skips filesystem config discovery).
                Cannot be combined with store_path; the config names its own path.
            storage: Injected slot storage (skips SQLite creation).

        Raises:
            ValueError: If both store_path and config are given
        """
        if config is not None and store_path is not None:
            raise ValueError("Pass either store_path or config, not both")

        if config is not None:
            self._config = config
        else:
            path = Path(store_path).expanduser().resolve() if store_path else get_default_store_path()
            self._config = load_or_create_config(path)
        self._store_path = self._config.path

        self._storage: Optional[SlotStorage] = storage
        self._ops_log_handler = configure_ops_log(self._store_path)
        try:
            if self._storage is None:
                self._storage = SlotStore(self._config.database_path)
            self._repo = NoteRepository(self._storage)
        except BaseException:
            # A corrupt slot is fatal; release the log handler and connection
            self.close()
            raise

        self._projection = ProjectionCache(
            lambda: project(self._repo.notes, self._repo.tags)
        )
        logger.debug(
            "Opened notebook at %s: %d notes, %d tags",
            self._store_path, len(self._repo.notes), len(self._repo.tags),
        )

    @property
    def store_path(self) -> Path:
        return self._store_path

    @property
    def repository(self) -> NoteRepository:
        return self._repo

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    @property
    def raw_notes(self) -> tuple[RawNote, ...]:
        return self._repo.notes

    @property
    def tags(self) -> tuple[Tag, ...]:
        return self._repo.tags

    @property
    def notes(self) -> tuple[Note, ...]:
        """Notes with resolved tags, recomputed only after a change."""
        return self._projection.get(
            self._repo.notes_handle.version,
            self._repo.tags_handle.version,
        )

    def get_note(self, id: str) -> Optional[Note]:
        return self._repo.get_note(id)

    def get_tag(self, id: str) -> Optional[Tag]:
        for tag in self._repo.tags:
            if tag.id == id:
                return tag
        return None

    def find_tags(self, label: str) -> list[Tag]:
        """Tags whose label equals ``label``. Labels are not unique."""
        return [tag for tag in self._repo.tags if tag.label == label]

    def find(self, title: str = "", tag_ids: Iterable[str] = ()) -> list[Note]:
        """
        Filter notes by title substring and required tags.

        Tags are matched by id. An id missing from the tag collection
        matches no note.
        """
        selected = [Tag(id=tag_id, label="") for tag_id in tag_ids]
        return filter_notes(self.notes, title, selected)

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def create_note(self, title: str, markdown: str, tags: Iterable[Tag] = ()) -> RawNote:
        return self._repo.create_note(title, markdown, tags)

    def update_note(self, id: str, title: str, markdown: str, tags: Iterable[Tag] = ()) -> None:
        self._repo.update_note(id, title, markdown, tags)

    def delete_note(self, id: str) -> None:
        self._repo.delete_note(id)

    def add_tag(self, tag: Tag) -> None:
        self._repo.add_tag(tag)

    def create_tag(self, label: str) -> Tag:
        return self._repo.create_tag(label)

    def update_tag_label(self, id: str, label: str) -> None:
        self._repo.update_tag_label(id, label)

    def delete_tag(self, id: str) -> None:
        self._repo.delete_tag(id)

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_data(self) -> dict[str, Any]:
        """
        Export both collections in their stored record shape.

        Returns:
            Dict in notekeep-export format (version 1)
        """
        return {
            "format": EXPORT_FORMAT,
            "version": EXPORT_VERSION,
            "exported_at": utc_now(),
            "tags": [tag.to_dict() for tag in self._repo.tags],
            "notes": [note.to_dict() for note in self._repo.notes],
        }

    def import_data(self, data: dict[str, Any], *, mode: str = "merge") -> dict[str, int]:
        """
        Import notes and tags from an export dict.

        Args:
            data: Dict in notekeep-export format
            mode: "merge" (skip existing IDs) or "replace" (swap both collections)

        Returns:
            Dict with stats: {notes, tags, skipped}
        """
        if not isinstance(data, dict):
            raise ValueError("Export data must be a JSON object")
        if data.get("format") != EXPORT_FORMAT:
            raise ValueError(f"Invalid export format (expected '{EXPORT_FORMAT}')")
        version = data.get("version", 0)
        if not isinstance(version, int) or isinstance(version, bool):
            raise ValueError(f"Invalid export format version: {version!r}")
        if version > EXPORT_VERSION:
            raise ValueError(
                f"Export format version {version} is not supported "
                f"(this version supports up to {EXPORT_VERSION})"
            )
        if mode not in ("merge", "replace"):
            raise ValueError(f"Unknown import mode: {mode!r}")

        try:
            tags = decode_tags(data.get("tags", []))
            notes = decode_notes(data.get("notes", []))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed export record: {e}") from e

        if mode == "merge":
            tag_ids = {tag.id for tag in self._repo.tags}
            note_ids = {note.id for note in self._repo.notes}
        else:
            tag_ids, note_ids = set(), set()
        # Repeated ids within the payload are skipped too
        new_tags = _first_by_id(tags, tag_ids)
        new_notes = _first_by_id(notes, note_ids)
        skipped = (len(tags) - len(new_tags)) + (len(notes) - len(new_notes))

        if mode == "merge":
            self._repo.replace_all(
                tags=(*self._repo.tags, *new_tags),
                notes=(*self._repo.notes, *new_notes),
            )
        else:
            self._repo.replace_all(tags=new_tags, notes=new_notes)

        logger.info(
            "Imported %d notes, %d tags (%s, %d skipped)",
            len(new_notes), len(new_tags), mode, skipped,
        )
        return {"notes": len(new_notes), "tags": len(new_tags), "skipped": skipped}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close storage and detach the operations log."""
        if self._storage is not None:
            self._storage.close()
            self._storage = None
        if self._ops_log_handler is not None:
            remove_ops_log(self._ops_log_handler)
            self._ops_log_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _first_by_id(records, seen: set[str]) -> list:
    """Keep records whose id is not in ``seen``, adding each kept id to it."""
    kept = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        kept.append(record)
    return kept
