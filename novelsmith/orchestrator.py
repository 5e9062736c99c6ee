"""Hierarchical generation pipeline.

Story bible extraction -> architect skeleton -> skeleton validation ->
sequential per-unit drafting. Units are drafted strictly in order because
unit i+1's context carries unit i's freshly written dense summary.
"""

import json
from dataclasses import dataclass, field
from typing import Callable, Optional

from loguru import logger

from . import rubrics
from .config import Config
from .context import BLOCK_SEPARATOR, ContextAssembler, format_story_state
from .errors import ParseError, ValidationGap
from .extraction import parse_json_block, strip_fences
from .models.story import (
    ContentUnit,
    DraftStatus,
    SkeletonEntry,
    StoryState,
    ValidationEntry,
    new_id,
)
from .optimizer import OptimizationConfig, OptimizationEngine, text_parser, text_serializer
from .prompt_library import PromptLibrary
from .service import GenerationService, collect_stream
from .staleness import StalenessTracker
from .store import InMemoryStore
from .summarizer import RollingSummarizer

ProgressCallback = Callable[[str, int, int], None]

# Model output sometimes uses the camelCase names of the bible fields
STORY_STATE_ALIASES = {
    "core_themes": "coreThemes",
    "terminologies": "characterTerminologies",
    "tone_guidelines": "toneGuidelines",
    "narrative_arc": "narrativeArc",
    "motifs": "motifs",
    "world_rules": "worldRules",
}
LIST_WRAPPER_KEYS = ("chapters", "units", "skeleton", "validations", "items")


def _noop_progress(msg: str, index: int, total: int) -> None:
    pass


def _as_rows(data) -> list[dict]:
    """Normalize a JSON payload into a list of dict rows."""
    if isinstance(data, dict):
        for key in LIST_WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            return []
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]


def match_validations(
    units: list[ContentUnit], validations: list[ValidationEntry]
) -> tuple[list[tuple[ContentUnit, ValidationEntry]], list[ValidationGap]]:
    """Pair validator rows with units by id, else by position.

    Positional pairing covers ``min(len(units), len(validations))`` rows;
    a row beyond that with an unknown id is dropped, as is a row whose
    positional unit is already claimed by another row's id.
    """
    by_id = {u.id: u for u in units}
    claimed = {v.id for v in validations if v.id in by_id}
    limit = min(len(units), len(validations))
    pairs = []
    gaps = []
    for i, v in enumerate(validations):
        unit = by_id.get(v.id)
        if unit is not None:
            pairs.append((unit, v))
            continue
        if i < limit and units[i].id not in claimed:
            gap = ValidationGap(v.id, matched_unit_id=units[i].id)
            pairs.append((units[i], v))
        else:
            gap = ValidationGap(v.id)
        logger.warning(str(gap))
        gaps.append(gap)
    return pairs, gaps


@dataclass
class PipelineReport:
    story_state_extracted: bool = False
    skeleton_count: int = 0
    validated_count: int = 0
    drafted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    gaps: list[ValidationGap] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Orchestrator:
    """Sequences the whole generation pipeline over a project store."""

    def __init__(
        self,
        service: GenerationService,
        store: InMemoryStore,
        config: Optional[Config] = None,
        prompts: Optional[PromptLibrary] = None,
        progress: ProgressCallback = _noop_progress,
    ):
        self.service = service
        self.store = store
        self.config = config or Config()
        self.prompts = prompts or PromptLibrary()
        self.progress = progress

        gen = self.config.generation
        self.assembler = ContextAssembler(store)
        self.summarizer = RollingSummarizer(
            service, self.prompts, gen.summary_min_words, gen.summary_max_words
        )
        self.tracker = StalenessTracker(store, self.assembler)
        self.engine = OptimizationEngine(service)

    # ------------------------------------------------------------------
    # Whole-pipeline stages (fail-fast)
    # ------------------------------------------------------------------

    def extract_story_state(self, premise: str) -> StoryState:
        """Build a new story bible from the premise, replacing any existing one."""
        raw = self.service.complete(
            self.prompts.get("story_state_extractor"), f"PREMISE / OUTLINE:\n{premise}"
        )
        data = parse_json_block(raw, default={})
        if not isinstance(data, dict):
            data = {}
        values = {
            name: data.get(name, data.get(alias, ""))
            for name, alias in STORY_STATE_ALIASES.items()
        }
        state = StoryState.model_validate(values)
        if state.is_empty():
            logger.warning("Story bible extraction returned nothing usable")
        self.store.set_story_state(state)
        logger.info("Story bible extracted")
        return state

    def plan_skeleton(self, premise: str, unit_count: int) -> list[ContentUnit]:
        """Architect pass: merge a skeleton into the store's units.

        An entry whose id matches an existing unit refreshes its title,
        placeholder and synopsis; the rest are appended after the existing
        units. No unit is ever removed, and drafted units keep their body
        and status.
        """
        user = (
            f"Create exactly {unit_count} chapters.\n\n"
            f"{format_story_state(self.store.get_story_state())}\n\n"
            f"PREMISE:\n{premise}"
        )
        raw = self.service.complete(self.prompts.get("architect"), user.strip())
        rows = _as_rows(parse_json_block(raw, default=[]))
        entries = [SkeletonEntry.model_validate(row) for row in rows][:unit_count]
        if not entries:
            raise ParseError("Architect returned no skeleton entries", raw=raw)
        if len(entries) < unit_count:
            logger.warning(f"Architect returned {len(entries)} of {unit_count} units")

        existing = self.store.list_units()
        next_index = existing[-1].order_index + 1 if existing else 0
        seen: set[str] = set()
        units = []
        added = 0
        for entry in entries:
            unit_id = entry.id if entry.id not in seen else new_id()
            seen.add(unit_id)
            unit = self.store.get_unit(unit_id)
            if unit is not None:
                fields = dict(
                    title=entry.title, placeholder=entry.placeholder, synopsis=entry.summary
                )
                if not unit.has_body:
                    fields["draft_status"] = DraftStatus.SKELETON
                units.append(self.store.update_unit(unit_id, **fields))
                continue
            units.append(
                self.store.add_unit(
                    ContentUnit(
                        id=unit_id,
                        order_index=next_index + added,
                        title=entry.title,
                        placeholder=entry.placeholder,
                        synopsis=entry.summary,
                        draft_status=DraftStatus.SKELETON,
                    )
                )
            )
            added += 1
        logger.info(
            f"Skeleton planned: {len(units)} units ({added} new, "
            f"{len(units) - added} refreshed)"
        )
        return units

    def validate_skeleton(self) -> tuple[int, list[ValidationGap]]:
        """Check every placeholder against the bible; returns (validated, gaps)."""
        units = self.store.list_units()
        placeholders = [
            {"id": u.id, "title": u.title, "placeholder": u.placeholder} for u in units
        ]
        user = (
            f"{format_story_state(self.store.get_story_state())}\n\n"
            f"CHAPTER PLACEHOLDERS:\n{json.dumps(placeholders, indent=2, ensure_ascii=False)}"
        )
        raw = self.service.complete(self.prompts.get("skeleton_validator"), user.strip())
        validations = [
            ValidationEntry.model_validate(row)
            for row in _as_rows(parse_json_block(raw, default=[]))
        ]

        pairs, gaps = match_validations(units, validations)
        validated = 0
        for unit, v in pairs:
            # Drafted units keep their status; only the notes are refreshed
            if unit.has_body:
                self.store.update_unit(unit.id, validator_notes=v.validator_notes)
                continue
            self.store.update_unit(
                unit.id, validator_notes=v.validator_notes, draft_status=v.draft_status
            )
            if v.draft_status == DraftStatus.VALIDATED:
                validated += 1
        logger.info(
            f"Skeleton validated: {validated}/{len(units)} ready, {len(gaps)} gap(s)"
        )
        return validated, gaps

    # ------------------------------------------------------------------
    # Per-unit drafting (fail-soft)
    # ------------------------------------------------------------------

    def draft_unit(
        self, unit_id: str, optimize: bool = False, stream: bool = False
    ) -> ContentUnit:
        """Draft one unit and record its summary and context metadata.

        Body, status and summary are written together once the summary
        exists, so a failure anywhere before that leaves the unit as it was.
        """
        unit = self.store.get_unit(unit_id)
        if unit is None:
            raise KeyError(f"No unit with id '{unit_id}'")

        predecessor = self.assembler.find_predecessor(unit)
        if predecessor and predecessor.has_body and not predecessor.dense_summary.strip():
            logger.info(f"Summarizing predecessor '{predecessor.title}' first")
            summary = self.summarizer.summarize(predecessor.body, predecessor.title)
            self.store.update_unit(predecessor.id, dense_summary=summary)

        blocks = self.assembler.build_blocks(
            unit, self.store.get_story_state(), predecessor
        )
        body = self._generate_body(unit, BLOCK_SEPARATOR.join(blocks), optimize, stream)
        if not body:
            raise ParseError(f"Empty body generated for '{unit.title}'")

        summary = self.summarizer.summarize(body, unit.title)
        self.store.update_unit(
            unit.id, body=body, draft_status=DraftStatus.DRAFT, dense_summary=summary
        )
        return self.tracker.update_context_metadata(unit.id)

    def draft_units(
        self,
        overwrite: bool = False,
        optimize: bool = False,
        stream: bool = False,
        report: Optional[PipelineReport] = None,
    ) -> PipelineReport:
        report = report or PipelineReport()
        units = self.store.list_units()
        total = len(units)

        for index, unit in enumerate(units, 1):
            with logger.contextualize(unit=unit.id):
                if unit.has_body and not overwrite:
                    logger.info(f"Skipping '{unit.title}': already drafted")
                    report.skipped.append(unit.id)
                    continue
                if not unit.synopsis.strip():
                    logger.info(f"Skipping '{unit.title}': no synopsis")
                    report.skipped.append(unit.id)
                    continue

                self.progress(f"Drafting '{unit.title}'", index, total)
                try:
                    self.draft_unit(unit.id, optimize=optimize, stream=stream)
                except Exception as e:
                    logger.error(f"Drafting '{unit.title}' failed: {e}")
                    report.failed[unit.id] = str(e)
                    continue
                report.drafted.append(unit.id)
                logger.info(f"Drafted '{unit.title}' ({index}/{total})")

        return report

    def auto_build(
        self,
        premise: str,
        unit_count: Optional[int] = None,
        overwrite: Optional[bool] = None,
        optimize: Optional[bool] = None,
        stream: Optional[bool] = None,
    ) -> PipelineReport:
        """Run the full pipeline end to end.

        Errors in bible extraction, skeleton planning or validation abort the
        run; drafting errors are recorded per unit on the returned report.
        """
        gen = self.config.generation
        unit_count = unit_count or gen.unit_count
        overwrite = gen.overwrite if overwrite is None else overwrite
        optimize = self.config.optimizer.enabled if optimize is None else optimize
        stream = gen.stream if stream is None else stream

        report = PipelineReport()
        self.store.set_premise(premise)
        try:
            self.progress("Extracting story bible", 1, 3)
            self.extract_story_state(premise)
            report.story_state_extracted = True

            self.progress("Planning skeleton", 2, 3)
            report.skeleton_count = len(self.plan_skeleton(premise, unit_count))

            self.progress("Validating skeleton", 3, 3)
            report.validated_count, report.gaps = self.validate_skeleton()
        except Exception as e:
            logger.error(f"Pipeline aborted before drafting: {e}")
            raise

        return self.draft_units(
            overwrite=overwrite, optimize=optimize, stream=stream, report=report
        )

    # ------------------------------------------------------------------

    def _generate_body(
        self, unit: ContentUnit, context: str, optimize: bool, stream: bool
    ) -> str:
        system = self.prompts.get("chapter_writer")
        if stream:
            raw = collect_stream(self.service, system, context)
        else:
            raw = self.service.complete(system, context)
        body = strip_fences(raw)
        if not optimize or not body:
            return body

        settings = self.config.optimizer
        result = self.engine.optimize(
            body,
            OptimizationConfig(
                task_name=f"chapter '{unit.title}'",
                dimensions=rubrics.CHAPTER,
                serialize=text_serializer,
                parse=text_parser,
                context=context,
                max_iterations=settings.max_iterations,
                target_score=settings.target_score,
            ),
        )
        logger.info(
            f"Optimized '{unit.title}': {result.iterations} iteration(s), "
            f"score {result.final_score:.2f}"
        )
        return result.improved
