"""
Note and tag repository.

Owns the two persisted collections (NOTES and TAGS) and the CRUD
mutations over them. Callers author notes with Tag objects; only the
tag ids are stored.

Mutations on unknown ids are silent no-ops. Deleting a tag does not
remove its id from notes that reference it; the projection drops
such ids when resolving.
"""

import logging
from typing import Iterable, Optional

from .protocol import SlotStorage
from .slot_store import DurableValue
from .types import (
    Note,
    RawNote,
    Tag,
    decode_notes,
    decode_tags,
    encode_notes,
    encode_tags,
    new_id,
    tag_ids_of,
)
from .views import project

logger = logging.getLogger(__name__)

NOTES_KEY = "NOTES"
TAGS_KEY = "TAGS"


class NoteRepository:
    """
    CRUD over the NOTES and TAGS slots.

    Every mutation writes each affected collection exactly once,
    including updates and deletes that match nothing.
    """

    def __init__(self, storage: SlotStorage) -> None:
        self._notes: DurableValue[tuple[RawNote, ...]] = DurableValue.open(
            storage, NOTES_KEY, tuple, decode=decode_notes, encode=encode_notes,
        )
        self._tags: DurableValue[tuple[Tag, ...]] = DurableValue.open(
            storage, TAGS_KEY, tuple, decode=decode_tags, encode=encode_tags,
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def notes(self) -> tuple[RawNote, ...]:
        return self._notes.value

    @property
    def tags(self) -> tuple[Tag, ...]:
        return self._tags.value

    @property
    def notes_handle(self) -> DurableValue[tuple[RawNote, ...]]:
        return self._notes

    @property
    def tags_handle(self) -> DurableValue[tuple[Tag, ...]]:
        return self._tags

    def get_note(self, id: str) -> Optional[Note]:
        """Resolved note by id, or None if no note has that id."""
        for raw in self._notes.value:
            if raw.id == id:
                return project([raw], self._tags.value)[0]
        return None

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    def create_note(self, title: str, markdown: str, tags: Iterable[Tag]) -> RawNote:
        """Append a new note with a fresh id. Returns the stored record."""
        note = RawNote(id=new_id(), title=title, markdown=markdown, tag_ids=tag_ids_of(tags))
        self._notes.set(lambda prev: (*prev, note))
        logger.info("Created note %s", note.id)
        return note

    def update_note(self, id: str, title: str, markdown: str, tags: Iterable[Tag]) -> None:
        """Replace title, markdown and tag references in place. Keeps the id."""
        tag_ids = tag_ids_of(tags)

        def replace(prev: tuple[RawNote, ...]) -> tuple[RawNote, ...]:
            return tuple(
                RawNote(id=note.id, title=title, markdown=markdown, tag_ids=tag_ids)
                if note.id == id else note
                for note in prev
            )

        self._notes.set(replace)
        logger.info("Updated note %s", id)

    def delete_note(self, id: str) -> None:
        self._notes.set(lambda prev: tuple(note for note in prev if note.id != id))
        logger.info("Deleted note %s", id)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def add_tag(self, tag: Tag) -> None:
        """Append a tag. The caller supplies a fresh id; nothing is checked."""
        self._tags.set(lambda prev: (*prev, tag))
        logger.info("Added tag %s (%s)", tag.id, tag.label)

    def create_tag(self, label: str) -> Tag:
        """Build a tag with a fresh id for ``label`` and add it."""
        tag = Tag(id=new_id(), label=label)
        self.add_tag(tag)
        return tag

    def update_tag_label(self, id: str, label: str) -> None:
        self._tags.set(lambda prev: tuple(
            Tag(id=tag.id, label=label) if tag.id == id else tag
            for tag in prev
        ))
        logger.info("Relabeled tag %s to %s", id, label)

    def delete_tag(self, id: str) -> None:
        """Remove a tag. Notes keep their reference to it."""
        self._tags.set(lambda prev: tuple(tag for tag in prev if tag.id != id))
        logger.info("Deleted tag %s", id)

    # -------------------------------------------------------------------------
    # Bulk replacement (import)
    # -------------------------------------------------------------------------

    def replace_all(
        self,
        *,
        notes: Optional[Iterable[RawNote]] = None,
        tags: Optional[Iterable[Tag]] = None,
    ) -> None:
        """Swap whole collections. Collections passed as None are left untouched."""
        if tags is not None:
            self._tags.set(tuple(tags))
        if notes is not None:
            self._notes.set(tuple(notes))
