"""Data models for the story bible, content units and participants."""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def new_id() -> str:
    return str(uuid4())


def _as_text(value: Any) -> str:
    """Coerce model output (lists, dicts, None) into a plain string field."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return "\n".join(_as_text(v) for v in value if v is not None)
    if isinstance(value, dict):
        return "\n".join(f"{k}: {_as_text(v)}" for k, v in value.items())
    return str(value)


class DraftStatus(str, Enum):
    IDEA = "idea"
    SKELETON = "skeleton"
    VALIDATED = "validated"
    DRAFT = "draft"
    COMPLETE = "complete"


class StoryState(BaseModel):
    """Global thematic and continuity context shared by every unit."""

    core_themes: str = ""
    terminologies: str = ""
    tone_guidelines: str = ""
    narrative_arc: str = ""
    motifs: str = ""
    world_rules: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    def is_empty(self) -> bool:
        return not any(v.strip() for v in self.model_dump().values())


class Participant(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    role: str = ""
    bio: str = ""
    traits: str = ""
    is_point_of_view: bool = False
    diction_rules: str = ""
    forbidden_phrases: str = ""
    signature_metaphors: str = ""


class Term(BaseModel):
    """A terminology entry. Empty ``unit_ids`` means the term is global."""

    id: str = Field(default_factory=new_id)
    term: str
    definition: str = ""
    notes: str = ""
    unit_ids: list[str] = Field(default_factory=list)
    category: str = "other"  # place, object, concept, character, event, other
    aliases: str = ""

    def applies_to(self, unit_id: str) -> bool:
        return not self.unit_ids or unit_id in self.unit_ids


class ContentUnit(BaseModel):
    """One addressable piece of the narrative, e.g. a chapter."""

    id: str = Field(default_factory=new_id)
    order_index: int = 0
    title: str = ""
    placeholder: str = ""
    validator_notes: str = ""
    draft_status: DraftStatus = DraftStatus.IDEA
    dense_summary: str = ""
    context_snapshot: str = ""
    last_prompt_hash: str = ""
    context_token_estimate: int = 0
    body: str = ""
    synopsis: str = ""
    participant_ids: list[str] = Field(default_factory=list)

    @property
    def has_body(self) -> bool:
        return bool(self.body.strip())


class SkeletonEntry(BaseModel):
    """One row of the architect pass."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    placeholder: str = ""
    summary: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def fill_id(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return new_id()
        return str(value)

    @field_validator("title", "placeholder", "summary", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class ValidationEntry(BaseModel):
    """One row of the skeleton validator's output."""

    id: str = ""
    validator_notes: str = ""
    draft_status: DraftStatus = DraftStatus.SKELETON

    @field_validator("id", "validator_notes", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("draft_status", mode="before")
    @classmethod
    def restrict_status(cls, value: Any) -> DraftStatus:
        if str(value).lower() == DraftStatus.VALIDATED.value:
            return DraftStatus.VALIDATED
        return DraftStatus.SKELETON


class Project(BaseModel):
    """The persisted aggregate: bible, ordered units, cast and terminology."""

    id: str = Field(default_factory=new_id)
    title: str = "Untitled Project"
    premise: str = ""
    story_state: StoryState = Field(default_factory=StoryState)
    units: list[ContentUnit] = Field(default_factory=list)
    participants: list[Participant] = Field(default_factory=list)
    terms: list[Term] = Field(default_factory=list)
