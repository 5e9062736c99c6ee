"""Pre-built dimension sets for common optimization tasks."""

from .models.optimization import Dimension


def _dims(*rows: tuple[str, str, float]) -> list[Dimension]:
    return [Dimension(name=n, description=d, weight=w) for n, d, w in rows]


TERMINOLOGY = _dims(
    ("Uniqueness", "Terms are specific and evocative for this world, not generic", 0.3),
    ("Consistency", "Terms fit the genre, tone, and established lore", 0.25),
    ("Clarity", "Definitions are clear, concise, and unambiguous", 0.2),
    ("Necessity", "Each term serves a purpose and enriches the story", 0.15),
    ("Memorability", "Terms are distinctive and easy to remember", 0.1),
)

CHAPTER = _dims(
    ("Continuity", "Events flow logically from previous chapters", 0.25),
    ("Character Voice", "Characters speak and act consistently with their established traits", 0.2),
    ("Pacing", "Scene rhythm is appropriate, neither rushed nor draggy", 0.15),
    ("Tension", "Conflict and stakes are maintained throughout", 0.15),
    ("Sensory Detail", "Rich, specific details ground the reader in the scene", 0.15),
    ("Emotional Arc", "Character emotions evolve believably through the chapter", 0.1),
)

BEATS = _dims(
    ("Specificity", "Beats are concrete events, not vague descriptions", 0.3),
    ("Coverage", "Key moments from the synopsis are represented", 0.25),
    ("Balance", "Mix of action, dialogue, and emotional beats", 0.2),
    ("Sequence", "Beats are ordered logically and build tension", 0.15),
    ("Checkability", "Each beat can be verified as accomplished or not", 0.1),
)

TRANSITION = _dims(
    ("Flow", "The transition feels natural, not jarring", 0.3),
    ("Continuity", "Time, place, and character state are consistent", 0.25),
    ("Hook", "Reader is compelled to continue reading", 0.2),
    ("Voice Preservation", "Author style is maintained across the transition", 0.15),
    ("Efficiency", "Transition is economical, no unnecessary padding", 0.1),
)

# Rubrics for scoring the output of a prompt template (used by optimize_prompt)
CHAPTER_GENERATION = _dims(
    ("Word Count", "Output meets the 2000-3000 word target", 0.2),
    ("Scene Structure", "Clear beginning, development, and ending", 0.2),
    ("Show vs Tell", "Uses sensory details and action, not exposition dumps", 0.2),
    ("Dialogue Quality", "Natural dialogue with subtext and character voice", 0.15),
    ("Pacing", "Appropriate rhythm, not rushed or draggy", 0.15),
    ("Format Compliance", "Follows all formatting requirements in the prompt", 0.1),
)

TERMINOLOGY_GENERATION = _dims(
    ("Uniqueness", "Terms are specific to this world, not generic fantasy/sci-fi", 0.25),
    ("Thematic Fit", "Terms evoke the story tone and atmosphere", 0.25),
    ("Definition Quality", "Definitions are clear, evocative, and useful", 0.2),
    ("Category Accuracy", "Terms are correctly categorized", 0.15),
    ("JSON Format", "Output is valid JSON matching expected schema", 0.15),
)

OUTLINE_GENERATION = _dims(
    ("Arc Structure", "Clear story arc with rising action and climax", 0.25),
    ("Chapter Progression", "Each chapter advances the plot meaningfully", 0.2),
    ("Character Integration", "Characters are woven into the plot naturally", 0.2),
    ("Premise Alignment", "Outline matches the given premise/genre", 0.2),
    ("JSON Format", "Output is valid JSON matching expected schema", 0.15),
)

RUBRICS: dict[str, list[Dimension]] = {
    "terminology": TERMINOLOGY,
    "chapter": CHAPTER,
    "beats": BEATS,
    "transition": TRANSITION,
    "chapter_generation": CHAPTER_GENERATION,
    "terminology_generation": TERMINOLOGY_GENERATION,
    "outline_generation": OUTLINE_GENERATION,
}


def get_rubric(name: str) -> list[Dimension]:
    try:
        return RUBRICS[name]
    except KeyError:
        raise KeyError(
            f"Unknown rubric '{name}'. Available: {', '.join(sorted(RUBRICS))}"
        ) from None
