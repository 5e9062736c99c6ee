"""Shared fixtures: a scripted generation service and a small sample project."""

import json
from typing import Iterator

import pytest

from novelsmith.models.story import (
    ContentUnit,
    DraftStatus,
    Participant,
    Project,
    StoryState,
    Term,
)
from novelsmith.store import InMemoryStore


class FakeService:
    """Returns queued responses in order and records every call.

    A queued exception instance is raised instead of returned. Once the
    queue is empty ``default`` is returned.
    """

    def __init__(self, responses=None, default: str = ""):
        self.responses = list(responses or [])
        self.default = default
        self.calls: list[tuple[str, str]] = []
        self.stream_calls: list[tuple[str, str]] = []

    def queue(self, *responses) -> "FakeService":
        self.responses.extend(responses)
        return self

    def _next(self):
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self._next()

    def stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]:
        self.stream_calls.append((system_prompt, user_prompt))
        text = self._next()
        for i in range(0, len(text), 7):
            yield text[i:i + 7]


def judge_response(score: float, mutations: int = 1) -> str:
    """A well-formed judge reply with a single trace."""
    return json.dumps({
        "traces": [{
            "dimension": "Continuity",
            "score": score,
            "evidence": ["'the tide came in'"],
            "failures": ["'suddenly' is used three times"],
            "successes": ["opening image is strong"],
        }],
        "overall_score": score,
        "priority_fix": "Cut the repeated 'suddenly'",
        "mutations": [
            {
                "target": "paragraph 2",
                "issue": "repetitive adverbs",
                "suggestion": "replace with concrete action",
                "rationale": "tightens pacing",
            }
        ] * mutations,
    })


def summary_response(text: str = "Mara climbs the lighthouse and finds the lamp cold.") -> str:
    return json.dumps({"denseSummary": text})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
def story_state():
    return StoryState(
        core_themes="Grief and the stubbornness of memory",
        terminologies="Tidewell is always capitalized",
        tone_guidelines="Quiet, salt-worn, restrained",
        narrative_arc="",
        motifs="The cold lamp",
        world_rules="The sea takes one name every winter",
    )


@pytest.fixture
def sample_project(story_state):
    return Project(
        title="The Tidewell Light",
        premise="A keeper's daughter relights a lighthouse the town wants dark.",
        story_state=story_state,
        units=[
            ContentUnit(
                id="u1",
                order_index=0,
                title="The Cold Lamp",
                placeholder="Establish Mara and the dark lighthouse",
                synopsis="Mara returns to Tidewell and climbs the lighthouse.",
                draft_status=DraftStatus.VALIDATED,
                participant_ids=["p1", "p2"],
            ),
            ContentUnit(
                id="u2",
                order_index=1,
                title="The Glass Choir",
                synopsis="Mara hears the Glass Choir for the first time.",
                validator_notes="Plant the missing logbook",
                participant_ids=["p1"],
            ),
            ContentUnit(
                id="u3",
                order_index=2,
                title="Low Water",
                synopsis="Tomas confesses what happened the night the lamp went out.",
                participant_ids=["p2"],
            ),
        ],
        participants=[
            Participant(
                id="p1",
                name="Mara",
                role="protagonist",
                bio="<p>The keeper's daughter</p>",
                is_point_of_view=True,
                diction_rules="Short sentences",
                forbidden_phrases="suddenly",
            ),
            Participant(id="p2", name="Tomas", role="harbourmaster", traits="evasive"),
        ],
        terms=[
            Term(id="t1", term="Tidewell", definition="The harbour town"),
            Term(id="t2", term="Glass Choir", definition="Singing bottles", unit_ids=["u2"]),
        ],
    )


@pytest.fixture
def store(sample_project):
    return InMemoryStore(sample_project)
