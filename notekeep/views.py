"""
Derived views over the raw collections.

project() turns stored notes into notes with resolved tags; filter_notes()
narrows them by title and tag selection. Both are pure: the same inputs
always give equal outputs, and nothing is written back to storage.
"""

from typing import Callable, Iterable, Optional, Sequence

from .types import Note, RawNote, Tag


def project(raw_notes: Iterable[RawNote], tags: Sequence[Tag]) -> list[Note]:
    """
    Resolve each note's tag ids against the tag collection.

    Tags come out in tag-collection order, once per tag record.
    Ids with no matching tag (deleted tags) are dropped silently.
    """
    result = []
    for raw in raw_notes:
        wanted = set(raw.tag_ids)
        result.append(Note(
            id=raw.id,
            title=raw.title,
            markdown=raw.markdown,
            tags=tuple(tag for tag in tags if tag.id in wanted),
        ))
    return result


def filter_notes(
    notes: Iterable[Note],
    title_query: str = "",
    selected_tags: Iterable[Tag] = (),
) -> list[Note]:
    """
    Notes whose title contains ``title_query`` (case-insensitive) and
    which carry every tag in ``selected_tags`` (matched by id).

    An empty query or empty selection matches everything. Input order
    is preserved.
    """
    query = title_query.lower()
    required = {tag.id for tag in selected_tags}
    return [
        note for note in notes
        if (not query or query in note.title.lower())
        and required.issubset(note.tag_ids)
    ]


class ProjectionCache:
    """
    Memoizes project() on the versions of its two source collections.

    The cache recomputes in full whenever either version changes. Results
    are tuples, shared between callers.
    """

    def __init__(self, compute: Callable[[], list[Note]]) -> None:
        self._compute = compute
        self._key: Optional[tuple[int, int]] = None
        self._notes: tuple[Note, ...] = ()

    def get(self, notes_version: int, tags_version: int) -> tuple[Note, ...]:
        key = (notes_version, tags_version)
        if key != self._key:
            self._notes = tuple(self._compute())
            self._key = key
        return self._notes

    def invalidate(self) -> None:
        self._key = None
