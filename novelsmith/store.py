"""Persistence collaborators: field-level get/set of units and the story bible."""

from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .models.story import ContentUnit, Participant, Project, StoryState, Term


class InMemoryStore:
    """Keeps a :class:`Project` in memory; units are mutated in place."""

    def __init__(self, project: Optional[Project] = None):
        self.project = project or Project()

    # -- story bible ---------------------------------------------------

    def get_story_state(self) -> StoryState:
        return self.project.story_state

    def set_story_state(self, state: StoryState) -> None:
        self.project.story_state = state
        self._changed()

    def update_story_state(self, **fields: Any) -> StoryState:
        state = self.project.story_state
        for name, value in fields.items():
            if name not in StoryState.model_fields:
                raise KeyError(f"StoryState has no field '{name}'")
            setattr(state, name, value)
        self._changed()
        return state

    def set_premise(self, premise: str) -> None:
        self.project.premise = premise
        self._changed()

    # -- units ---------------------------------------------------------

    def list_units(self) -> list[ContentUnit]:
        return sorted(self.project.units, key=lambda u: u.order_index)

    def get_unit(self, unit_id: str) -> Optional[ContentUnit]:
        for unit in self.project.units:
            if unit.id == unit_id:
                return unit
        return None

    def add_unit(self, unit: ContentUnit) -> ContentUnit:
        self.project.units.append(unit)
        self._changed()
        return unit

    def update_unit(self, unit_id: str, **fields: Any) -> Optional[ContentUnit]:
        unit = self.get_unit(unit_id)
        if unit is None:
            logger.warning(f"update_unit: no unit with id '{unit_id}'")
            return None
        for name, value in fields.items():
            if name not in ContentUnit.model_fields:
                raise KeyError(f"ContentUnit has no field '{name}'")
            setattr(unit, name, value)
        self._changed()
        return unit

    # -- read-only inputs ---------------------------------------------

    def list_participants(self) -> list[Participant]:
        return list(self.project.participants)

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.project.participants:
            if p.id == participant_id:
                return p
        return None

    def list_terms(self) -> list[Term]:
        return list(self.project.terms)

    def _changed(self) -> None:
        pass


class JsonFileStore(InMemoryStore):
    """An :class:`InMemoryStore` that writes the project to JSON after every change."""

    def __init__(self, path: Path):
        self.path = Path(path)
        if self.path.exists():
            project = Project.model_validate_json(self.path.read_text(encoding="utf-8"))
            logger.info(f"Loaded project '{project.title}' from {self.path}")
        else:
            project = Project()
        super().__init__(project)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.project.model_dump_json(indent=2), encoding="utf-8")

    def _changed(self) -> None:
        self.save()
