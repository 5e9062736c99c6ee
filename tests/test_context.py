"""Tests for novelsmith.context."""

from novelsmith.context import (
    BLOCK_SEPARATOR,
    CONTINUITY_INSTRUCTION,
    TERM_DIRECTIVE,
    ContextAssembler,
    format_story_state,
    select_pov,
)
from novelsmith.models.story import Participant, StoryState


# ---------------------------------------------------------------------------
# Story bible digest
# ---------------------------------------------------------------------------


class TestFormatStoryState:

    def test_labels_non_empty_fields(self, story_state):
        digest = format_story_state(story_state)
        assert digest.startswith("Story Bible:\n")
        assert "Core Themes: Grief and the stubbornness of memory" in digest
        assert "World Rules: The sea takes one name every winter" in digest
        assert "Narrative Arc" not in digest

    def test_empty_state(self):
        assert format_story_state(StoryState()) == ""
        assert format_story_state(None) == ""

    def test_strips_markup(self):
        state = StoryState(core_themes="<p>Loss &amp; memory</p>")
        assert format_story_state(state) == "Story Bible:\nCore Themes: Loss & memory"


class TestSelectPov:

    def test_marked_participant(self):
        a = Participant(name="A")
        b = Participant(name="B", is_point_of_view=True)
        assert select_pov([a, b]) is b

    def test_falls_back_to_first(self):
        a = Participant(name="A")
        assert select_pov([a, Participant(name="B")]) is a

    def test_empty(self):
        assert select_pov([]) is None


# ---------------------------------------------------------------------------
# Block assembly
# ---------------------------------------------------------------------------


class TestContextAssembler:

    def test_first_unit_has_no_previous_block(self, store):
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u1"))
        assert not any(b.startswith("Previous") for b in blocks)

    def test_block_order(self, store):
        store.update_unit("u1", dense_summary="Mara found the lamp cold.")
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u2"))
        assert blocks[0].startswith("Story Bible:")
        assert blocks[1] == "Previous Dense Summary:\nMara found the lamp cold."
        assert blocks[2] == "Validator Notes:\nPlant the missing logbook"
        assert blocks[3].startswith("Current Unit: The Glass Choir\nSynopsis:")
        assert blocks[4].startswith("Characters in this unit:")
        assert blocks[5].startswith("Terminology to honor:")
        assert blocks[-1] == CONTINUITY_INSTRUCTION

    def test_previous_synopsis_when_no_dense_summary(self, store):
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u2"))
        assert "Previous Synopsis:\nMara returns to Tidewell and climbs the lighthouse." in blocks

    def test_placeholder_block(self, store):
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u1"))
        assert "Placeholder:\nEstablish Mara and the dark lighthouse" in blocks

    def test_empty_blocks_are_omitted(self, store):
        store.set_story_state(StoryState())
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u3"))
        assert all(b.strip() for b in blocks)
        assert not any(b.startswith("Story Bible") for b in blocks)
        assert not any(b.startswith("Validator Notes") for b in blocks)

    def test_pov_voice_rules_only_for_pov(self, store):
        blocks = ContextAssembler(store).blocks_for(store.get_unit("u1"))
        cast = next(b for b in blocks if b.startswith("Characters in this unit:"))
        assert "- Mara (protagonist): The keeper's daughter" in cast
        assert "Never use: suddenly" in cast
        assert "- Tomas (harbourmaster) | Traits: evasive" in cast
        assert cast.count("Point-of-view voice rules") == 1

    def test_terms_are_filtered_by_unit(self, store):
        assembler = ContextAssembler(store)
        first = next(b for b in assembler.blocks_for(store.get_unit("u1"))
                     if b.startswith("Terminology"))
        second = next(b for b in assembler.blocks_for(store.get_unit("u2"))
                      if b.startswith("Terminology"))
        assert "Tidewell" in first and "Glass Choir" not in first
        assert "Glass Choir" in second
        assert second.endswith(TERM_DIRECTIVE)

    def test_build_prompt_joins_with_separator(self, store):
        assembler = ContextAssembler(store)
        unit = store.get_unit("u3")
        assert assembler.build_prompt(unit) == BLOCK_SEPARATOR.join(assembler.blocks_for(unit))

    def test_find_predecessor_follows_order_index(self, store):
        store.update_unit("u3", order_index=-1)
        assembler = ContextAssembler(store)
        assert assembler.find_predecessor(store.get_unit("u3")) is None
        assert assembler.find_predecessor(store.get_unit("u1")).id == "u3"
