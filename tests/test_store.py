"""Tests for novelsmith.store and the story models it persists."""

import json

import pytest

from novelsmith.models.story import ContentUnit, DraftStatus, Project, StoryState, Term
from novelsmith.store import InMemoryStore, JsonFileStore


class TestInMemoryStore:

    def test_list_units_sorted_by_order(self):
        store = InMemoryStore(Project(units=[
            ContentUnit(id="b", order_index=1),
            ContentUnit(id="a", order_index=0),
        ]))
        assert [u.id for u in store.list_units()] == ["a", "b"]

    def test_update_unit_mutates_in_place(self, store):
        unit = store.get_unit("u2")
        store.update_unit("u2", body="Text", draft_status=DraftStatus.DRAFT)
        assert unit.body == "Text"
        assert unit.has_body

    def test_update_unknown_unit(self, store):
        assert store.update_unit("missing", body="x") is None

    def test_update_unknown_field(self, store):
        with pytest.raises(KeyError):
            store.update_unit("u1", wordcount=5)
        with pytest.raises(KeyError):
            store.update_story_state(genre="noir")

    def test_update_story_state(self, store):
        store.update_story_state(core_themes="Forgiveness")
        assert store.get_story_state().core_themes == "Forgiveness"
        assert store.get_story_state().motifs == "The cold lamp"

    def test_add_unit(self, store):
        store.add_unit(ContentUnit(id="u4", order_index=3))
        assert [u.id for u in store.list_units()] == ["u1", "u2", "u3", "u4"]

    def test_participants_and_terms(self, store):
        assert store.get_participant("p2").name == "Tomas"
        assert store.get_participant("nobody") is None
        assert [t.term for t in store.list_terms()] == ["Tidewell", "Glass Choir"]


class TestJsonFileStore:

    def test_saves_on_change_and_reloads(self, tmp_path, sample_project):
        path = tmp_path / "books" / "project.json"
        store = JsonFileStore(path)
        for unit in sample_project.units:
            store.add_unit(unit)
        store.update_unit("u1", dense_summary="Saved summary")

        assert path.exists()
        data = json.loads(path.read_text())
        assert data["units"][0]["dense_summary"] == "Saved summary"

        reloaded = JsonFileStore(path)
        assert reloaded.get_unit("u1").dense_summary == "Saved summary"
        assert reloaded.get_unit("u1").draft_status == DraftStatus.VALIDATED

    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "new.json")
        assert store.list_units() == []
        assert not (tmp_path / "new.json").exists()


# ---------------------------------------------------------------------------
# Model coercion
# ---------------------------------------------------------------------------


class TestStoryModels:

    def test_story_state_coerces_structured_values(self):
        state = StoryState(core_themes=["grief", "memory"], motifs={"lamp": "hope"}, world_rules=None)
        assert state.core_themes == "grief\nmemory"
        assert state.motifs == "lamp: hope"
        assert state.world_rules == ""
        assert not state.is_empty()
        assert StoryState().is_empty()

    def test_term_scope(self):
        assert Term(term="Tidewell").applies_to("anything")
        scoped = Term(term="Glass Choir", unit_ids=["u2"])
        assert scoped.applies_to("u2")
        assert not scoped.applies_to("u1")

    def test_blank_body_is_not_a_body(self):
        assert not ContentUnit(body="   \n").has_body
