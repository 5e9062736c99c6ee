"""Assemble the ordered context blocks for a unit's generation call.

Blocks, in order, each omitted entirely when its source is empty:

1. story bible digest
2. previous unit's dense summary (else its synopsis)
3. placeholder
4. validator notes
5. synopsis / intent
6. participants (POV voice rules first)
7. terminology with an exact-usage directive
8. continuity instruction
"""

from typing import Optional

from .models.story import ContentUnit, Participant, StoryState, Term
from .store import InMemoryStore
from .utils.text import strip_markup

BLOCK_SEPARATOR = "\n\n---\n\n"

STORY_STATE_LABELS = [
    ("core_themes", "Core Themes"),
    ("terminologies", "Terminologies"),
    ("tone_guidelines", "Tone Guidelines"),
    ("narrative_arc", "Narrative Arc"),
    ("motifs", "Motifs"),
    ("world_rules", "World Rules"),
]

TERM_DIRECTIVE = (
    "You MUST use these exact terms as written. Do not paraphrase, rename, "
    "or invent alternatives."
)
CONTINUITY_INSTRUCTION = (
    "Guidance: Maintain continuity with the previous unit and set up the next "
    "unit naturally."
)


def format_story_state(state: Optional[StoryState]) -> str:
    """Labeled digest of the bible; empty string when every field is blank."""
    if state is None:
        return ""
    lines = []
    for field_name, label in STORY_STATE_LABELS:
        value = strip_markup(getattr(state, field_name))
        if value:
            lines.append(f"{label}: {value}")
    if not lines:
        return ""
    return "Story Bible:\n" + "\n".join(lines)


def select_pov(participants: list[Participant]) -> Optional[Participant]:
    """The point-of-view participant, or the first listed when none is marked."""
    if not participants:
        return None
    for p in participants:
        if p.is_point_of_view:
            return p
    return participants[0]


def format_participant(p: Participant, with_voice: bool) -> str:
    line = f"- {p.name}"
    if p.role:
        line += f" ({p.role})"
    bio = strip_markup(p.bio)
    if bio:
        line += f": {bio}"
    if p.traits:
        line += f" | Traits: {strip_markup(p.traits)}"
    if not with_voice:
        return line

    voice = []
    if p.diction_rules:
        voice.append(f"  Diction: {strip_markup(p.diction_rules)}")
    if p.forbidden_phrases:
        voice.append(f"  Never use: {strip_markup(p.forbidden_phrases)}")
    if p.signature_metaphors:
        voice.append(f"  Signature metaphors: {strip_markup(p.signature_metaphors)}")
    if voice:
        line += "\n  Point-of-view voice rules:\n" + "\n".join(voice)
    return line


def format_term(t: Term) -> str:
    line = f"- {t.term}"
    if t.definition:
        line += f": {strip_markup(t.definition)}"
    if t.notes:
        line += f" ({strip_markup(t.notes)})"
    if t.aliases:
        line += f" [aliases: {t.aliases}]"
    return line


class ContextAssembler:
    """Builds context blocks from a store's participants and terminology.

    The story bible and predecessor are passed in explicitly so callers
    decide which snapshot of them a block list reflects.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_predecessor(self, unit: ContentUnit) -> Optional[ContentUnit]:
        units = self.store.list_units()
        for i, u in enumerate(units):
            if u.id == unit.id:
                return units[i - 1] if i > 0 else None
        return None

    def build_blocks(
        self,
        unit: ContentUnit,
        story_state: Optional[StoryState],
        predecessor: Optional[ContentUnit],
    ) -> list[str]:
        blocks = [
            format_story_state(story_state),
            self._previous_block(predecessor),
            self._labeled("Placeholder", unit.placeholder),
            self._labeled("Validator Notes", unit.validator_notes),
            self._synopsis_block(unit),
            self._participants_block(unit),
            self._terminology_block(unit),
            CONTINUITY_INSTRUCTION,
        ]
        return [b for b in blocks if b]

    def blocks_for(self, unit: ContentUnit) -> list[str]:
        """Blocks using the store's current bible and the unit's predecessor."""
        return self.build_blocks(
            unit, self.store.get_story_state(), self.find_predecessor(unit)
        )

    def build_prompt(self, unit: ContentUnit) -> str:
        return BLOCK_SEPARATOR.join(self.blocks_for(unit))

    @staticmethod
    def _labeled(label: str, text: str) -> str:
        plain = strip_markup(text)
        return f"{label}:\n{plain}" if plain else ""

    def _previous_block(self, predecessor: Optional[ContentUnit]) -> str:
        if predecessor is None:
            return ""
        dense = strip_markup(predecessor.dense_summary)
        if dense:
            return f"Previous Dense Summary:\n{dense}"
        return self._labeled("Previous Synopsis", predecessor.synopsis)

    def _synopsis_block(self, unit: ContentUnit) -> str:
        synopsis = strip_markup(unit.synopsis)
        if not synopsis:
            return ""
        if unit.title:
            return f"Current Unit: {unit.title}\nSynopsis:\n{synopsis}"
        return f"Current Unit Synopsis:\n{synopsis}"

    def _participants_block(self, unit: ContentUnit) -> str:
        cast = [
            p for p in (self.store.get_participant(pid) for pid in unit.participant_ids) if p
        ]
        if not cast:
            return ""
        pov = select_pov(cast)
        lines = [format_participant(p, with_voice=p is pov) for p in cast]
        return "Characters in this unit:\n" + "\n".join(lines)

    def _terminology_block(self, unit: ContentUnit) -> str:
        terms = [t for t in self.store.list_terms() if t.applies_to(unit.id)]
        if not terms:
            return ""
        lines = "\n".join(format_term(t) for t in terms)
        return f"Terminology to honor:\n{lines}\n{TERM_DIRECTIVE}"
