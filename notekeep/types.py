"""
Data types for notes and tags.

Notes reference tags by id only when stored (RawNote). The resolved form
(Note) carries the Tag records themselves and is never persisted.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def new_id() -> str:
    """Generate a fresh opaque identifier for a note or tag."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Tag:
    """
    A labeled category with a stable identity.

    Labels are not unique; two tags may share a label.
    """
    id: str
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tag":
        return cls(id=data["id"], label=data["label"])


@dataclass(frozen=True)
class RawNote:
    """
    A note as persisted: tags are referenced by id.

    ``tag_ids`` may contain ids of deleted tags; those are dropped
    when the note is projected.
    """
    id: str
    title: str
    markdown: str
    tag_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        # Key names match the stored record format (tagIds)
        return {
            "id": self.id,
            "title": self.title,
            "markdown": self.markdown,
            "tagIds": list(self.tag_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawNote":
        return cls(
            id=data["id"],
            title=data["title"],
            markdown=data["markdown"],
            tag_ids=tuple(data["tagIds"]),
        )


@dataclass(frozen=True)
class Note:
    """A note with its tags resolved. Read-only projection."""
    id: str
    title: str
    markdown: str
    tags: tuple[Tag, ...] = field(default_factory=tuple)

    @property
    def tag_ids(self) -> tuple[str, ...]:
        return tuple(tag.id for tag in self.tags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "markdown": self.markdown,
            "tags": [tag.to_dict() for tag in self.tags],
        }

    def __str__(self) -> str:
        labels = ", ".join(tag.label for tag in self.tags)
        return f"{self.id}: {self.title}" + (f" [{labels}]" if labels else "")


def tag_ids_of(tags: Iterable[Tag]) -> tuple[str, ...]:
    """Extract the reference list stored on a RawNote."""
    return tuple(tag.id for tag in tags)


def encode_tags(tags: Iterable[Tag]) -> list[dict[str, Any]]:
    return [tag.to_dict() for tag in tags]


def decode_tags(data: list[dict[str, Any]]) -> tuple[Tag, ...]:
    return tuple(Tag.from_dict(item) for item in data)


def encode_notes(notes: Iterable[RawNote]) -> list[dict[str, Any]]:
    return [note.to_dict() for note in notes]


def decode_notes(data: list[dict[str, Any]]) -> tuple[RawNote, ...]:
    return tuple(RawNote.from_dict(item) for item in data)
