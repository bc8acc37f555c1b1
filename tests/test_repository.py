"""
Tests for NoteRepository CRUD.

Covers:
- tag references stored by id
- update in place, identity preserved
- silent no-ops for unknown ids
- no cascade from tag deletion into notes
- one write per affected collection per mutation
"""

import json
import sqlite3

import pytest

from notekeep.repository import NOTES_KEY, TAGS_KEY, NoteRepository
from notekeep.types import RawNote, Tag


def _stored(storage, key):
    return json.loads(storage.read(key))


class TestLoad:

    def test_empty_storage_gives_empty_collections(self, repo, mock_storage):
        assert repo.notes == ()
        assert repo.tags == ()
        assert mock_storage.writes == {}

    def test_loads_existing_slots(self, make_storage):
        storage = make_storage({
            TAGS_KEY: '[{"id": "a", "label": "work"}]',
            NOTES_KEY: '[{"id": "n1", "title": "T", "markdown": "M", "tagIds": ["a"]}]',
        })
        repo = NoteRepository(storage)
        assert repo.tags == (Tag("a", "work"),)
        assert repo.notes == (RawNote("n1", "T", "M", ("a",)),)


class TestNotes:

    def test_create_stores_tag_ids(self, repo, mock_storage, tag_a, tag_b):
        note = repo.create_note("T", "M", [tag_a, tag_b])
        assert note.tag_ids == ("a", "b")
        assert repo.notes == (note,)
        assert _stored(mock_storage, NOTES_KEY) == [
            {"id": note.id, "title": "T", "markdown": "M", "tagIds": ["a", "b"]}
        ]

    def test_create_assigns_fresh_ids(self, repo):
        n1 = repo.create_note("a", "", [])
        n2 = repo.create_note("b", "", [])
        assert n1.id != n2.id
        assert [n.id for n in repo.notes] == [n1.id, n2.id]

    def test_update_preserves_id_and_position(self, repo, tag_a):
        first = repo.create_note("one", "1", [])
        second = repo.create_note("two", "2", [])
        third = repo.create_note("three", "3", [])

        repo.update_note(second.id, "TWO", "22", [tag_a])

        assert [n.id for n in repo.notes] == [first.id, second.id, third.id]
        assert repo.notes[1] == RawNote(second.id, "TWO", "22", ("a",))
        assert repo.notes[0] == first
        assert repo.notes[2] == third

    def test_update_unknown_id_is_noop(self, repo, mock_storage):
        repo.create_note("T", "M", [])
        before = mock_storage.read(NOTES_KEY)
        repo.update_note("missing", "X", "Y", [])
        assert mock_storage.read(NOTES_KEY) == before

    def test_delete(self, repo):
        keep = repo.create_note("keep", "", [])
        gone = repo.create_note("gone", "", [])
        repo.delete_note(gone.id)
        assert repo.notes == (keep,)

    def test_delete_unknown_id_leaves_both_collections_unchanged(self, repo, mock_storage, tag_a):
        repo.add_tag(tag_a)
        repo.create_note("T", "M", [tag_a])
        notes_before = mock_storage.read(NOTES_KEY)
        tags_before = mock_storage.read(TAGS_KEY)

        repo.delete_note("missing")
        repo.delete_tag("missing")

        assert mock_storage.read(NOTES_KEY) == notes_before
        assert mock_storage.read(TAGS_KEY) == tags_before

    def test_get_note_resolves_tags(self, repo, tag_a):
        repo.add_tag(tag_a)
        raw = repo.create_note("T", "M", [tag_a])
        note = repo.get_note(raw.id)
        assert note.tags == (tag_a,)

    def test_get_note_unknown(self, repo):
        assert repo.get_note("missing") is None


class TestTags:

    def test_add_tag_appends_without_checks(self, repo):
        repo.add_tag(Tag("a", "x"))
        repo.add_tag(Tag("b", "x"))
        assert [t.label for t in repo.tags] == ["x", "x"]

    def test_create_tag_assigns_id(self, repo):
        tag = repo.create_tag("home")
        assert tag.id
        assert repo.tags == (tag,)

    def test_update_label(self, repo, tag_a, tag_b):
        repo.add_tag(tag_a)
        repo.add_tag(tag_b)
        repo.update_tag_label("a", "job")
        assert repo.tags == (Tag("a", "job"), tag_b)

    def test_update_label_unknown_is_noop(self, repo, tag_a):
        repo.add_tag(tag_a)
        repo.update_tag_label("missing", "x")
        assert repo.tags == (tag_a,)

    def test_delete_tag_does_not_cascade(self, repo, mock_storage, tag_a, tag_b):
        repo.add_tag(tag_a)
        repo.add_tag(tag_b)
        note = repo.create_note("N", "", [tag_a, tag_b])

        repo.delete_tag("a")

        assert repo.tags == (tag_b,)
        assert repo.notes[0].tag_ids == ("a", "b")
        assert _stored(mock_storage, NOTES_KEY)[0]["tagIds"] == ["a", "b"]
        assert repo.get_note(note.id).tags == (tag_b,)


class TestWrites:

    @pytest.mark.parametrize("mutate, key", [
        (lambda r: r.create_note("T", "M", []), NOTES_KEY),
        (lambda r: r.update_note("missing", "T", "M", []), NOTES_KEY),
        (lambda r: r.delete_note("missing"), NOTES_KEY),
        (lambda r: r.add_tag(Tag("x", "y")), TAGS_KEY),
        (lambda r: r.update_tag_label("missing", "y"), TAGS_KEY),
        (lambda r: r.delete_tag("missing"), TAGS_KEY),
    ])
    def test_one_write_per_mutation(self, repo, mock_storage, mutate, key):
        mutate(repo)
        assert mock_storage.writes == {key: 1}

    def test_storage_failure_propagates(self, repo, mock_storage):
        mock_storage.fail_writes = True
        with pytest.raises(sqlite3.OperationalError):
            repo.create_note("T", "M", [])

    def test_replace_all(self, repo, mock_storage, tag_a):
        repo.replace_all(tags=[tag_a], notes=[RawNote("n", "T", "M", ("a",))])
        assert mock_storage.writes == {TAGS_KEY: 1, NOTES_KEY: 1}
        assert repo.tags == (tag_a,)

    def test_persisted_state_reloads(self, slot_store, tag_a):
        repo = NoteRepository(slot_store)
        repo.add_tag(tag_a)
        raw = repo.create_note("T", "M", [tag_a])

        reloaded = NoteRepository(slot_store)
        assert reloaded.tags == repo.tags
        assert reloaded.notes == repo.notes
        assert reloaded.get_note(raw.id).tags == (tag_a,)
