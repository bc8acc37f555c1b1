"""
notekeep

Personal notes with a title, a markdown body and a set of tags, stored
durably and browsed by title substring and tag intersection.

Quick Start:
    from notekeep import Notebook

    nb = Notebook()  # uses ~/.notekeep/
    home = nb.create_tag("home")
    nb.create_note("Grocery List", "- milk", [home])
    results = nb.find(title="grocery", tag_ids=[home.id])

CLI Usage:
    notekeep new "Grocery List" -b "- milk" -t home
    notekeep list -q grocery -t home

Notes and tags live in two slots (NOTES, TAGS) of a SQLite database in the
store directory. Configuration is persisted in a TOML file alongside it.
"""

from .api import Notebook
from .repository import NoteRepository
from .slot_store import DurableValue, SlotStore
from .types import Note, RawNote, Tag
from .views import filter_notes, project

__version__ = "0.1.0"
__all__ = [
    "Notebook",
    "NoteRepository",
    "DurableValue",
    "SlotStore",
    "Note",
    "RawNote",
    "Tag",
    "filter_notes",
    "project",
]
