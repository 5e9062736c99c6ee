"""Reflective optimization: Evaluate -> stop if good enough -> Improve.

The engine is generic over the candidate type. It never looks inside a
candidate; it only calls the ``serialize``/``parse`` pair supplied with the
:class:`OptimizationConfig`. The same loop is applied to prompt templates
by :meth:`OptimizationEngine.optimize_prompt`: run the template on a sample
input, score the output, reflect on the template's weaknesses, rewrite it.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from loguru import logger
from pydantic_core import to_jsonable_python

from .errors import ParseError
from .extraction import extract_json_block, strip_fences
from .judge import EvaluationJudge
from .models.optimization import (
    Dimension,
    OptimizationResult,
    PromptOptimizationResult,
    Reflection,
)
from .service import GenerationService

T = TypeVar("T")

ProgressCallback = Callable[[int, str, float], None]


def _noop_progress(iteration: int, phase: str, score: float) -> None:
    pass


@dataclass
class OptimizationConfig(Generic[T]):
    task_name: str
    dimensions: list[Dimension]
    serialize: Callable[[T], str]
    parse: Callable[[str], T]
    context: Optional[str] = None
    max_iterations: int = 2
    target_score: float = 0.85  # 0-1


@dataclass
class PromptOptimizationConfig:
    system_prompt: str
    prompt_name: str
    sample_input: str
    dimensions: list[Dimension]
    task_description: str
    max_iterations: int = 2
    target_score: float = 0.85


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


def json_serializer(candidate: Any) -> str:
    return json.dumps(to_jsonable_python(candidate), indent=2, ensure_ascii=False)


def json_parser(response: str) -> Any:
    block = extract_json_block(response)
    if block is None:
        raise ParseError("No JSON object or array in response", raw=response)
    try:
        return json.loads(block)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in response: {e}", raw=response) from e


def text_serializer(candidate: str) -> str:
    return candidate


def text_parser(response: str) -> str:
    text = strip_fences(response)
    if not text:
        raise ParseError("Empty response", raw=response)
    return text


# ---------------------------------------------------------------------------
# Prompt builders
# ---------------------------------------------------------------------------

IMPROVE_SYSTEM = """You are an expert optimizer applying targeted mutations to content.

TASK: Improve the content by applying the mutations identified through evaluation.
{context}
IMPROVEMENT RULES:
1. Address the PRIORITY FIX first
2. Apply each mutation precisely as suggested
3. Preserve what is working (the successes identified)
4. Maintain the same format and structure
5. Do not introduce new issues while fixing old ones

OUTPUT: Return ONLY the revised content in the same format as the input. No explanations or commentary."""

PROMPT_REFLECTION_SYSTEM = """You are a prompt engineering expert analyzing why a system prompt produced suboptimal output.

TASK THE PROMPT SHOULD ACCOMPLISH:
{task_description}

Analyze the prompt and its output to identify:
1. Instructions that are MISSING and would have improved the output
2. Instructions that are VAGUE and need to be more specific
3. Instructions that are COUNTERPRODUCTIVE and should be removed or changed
4. PATTERNS in the output failures that point to prompt weaknesses

Be concrete and actionable. Reference specific parts of the prompt and the output."""

PROMPT_MUTATION_SYSTEM = """You are a prompt engineering expert improving a system prompt based on reflection feedback.

YOUR TASK: Rewrite the prompt to address the identified weaknesses.

MUTATION RULES:
1. PRESERVE the core intent and format requirements
2. ADD specific instructions for identified gaps
3. CLARIFY vague instructions with concrete examples
4. REMOVE or REPHRASE counterproductive instructions
5. ADD guardrails against the specific failure patterns observed
6. Keep the prompt concise

OUTPUT: Return ONLY the improved prompt text, starting directly with its content."""

_PREAMBLES = [
    re.compile(r"^(?:here is|here's|the improved|improved prompt|new prompt)[^\n:]*[:\s]*", re.I),
    re.compile(r"^(?:revised|updated|modified)(?: prompt)?[:\s]*", re.I),
]
_FENCE_LINE = re.compile(r"^```[A-Za-z]*\s*$", re.M)


def build_improvement_directive(serialized: str, reflection: Reflection) -> str:
    mutations = "\n\n".join(
        f"{i}. {m.render()}" for i, m in enumerate(reflection.mutations, 1)
    )
    return (
        f"CURRENT CONTENT:\n{serialized}\n\n"
        f"EVALUATION TRACES:\n{reflection.trace_summary() or '- none'}\n\n"
        f"PRIORITY FIX: {reflection.priority_fix or 'none given'}\n\n"
        f"TARGETED MUTATIONS TO APPLY (target → issue → suggestion → rationale):\n"
        f"{mutations or 'none given'}"
    )


def extract_improved_prompt(response: str) -> str:
    cleaned = _FENCE_LINE.sub("", response or "").strip()
    for pattern in _PREAMBLES:
        cleaned = pattern.sub("", cleaned, count=1)
    return cleaned.strip()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class OptimizationEngine:
    def __init__(
        self,
        service: GenerationService,
        judge: Optional[EvaluationJudge] = None,
        progress: ProgressCallback = _noop_progress,
    ):
        self.service = service
        self.judge = judge or EvaluationJudge(service)
        self.progress = progress

    def evaluate(self, candidate: T, config: OptimizationConfig[T]) -> Reflection:
        """Single judge pass, no improvement."""
        return self.judge.evaluate(
            config.serialize(candidate),
            config.dimensions,
            context=config.context,
            task_name=config.task_name,
        )

    def optimize(self, candidate: T, config: OptimizationConfig[T]) -> OptimizationResult[T]:
        reflections: list[Reflection] = []
        current = candidate
        iteration = 0
        final_score = 0.0

        while iteration < config.max_iterations:
            iteration += 1

            self.progress(iteration, "evaluating", final_score)
            reflection = self.evaluate(current, config)
            reflections.append(reflection)
            final_score = reflection.overall_score / 10

            if final_score >= config.target_score:
                logger.info(
                    f"{config.task_name}: reached {final_score:.2f} "
                    f"(target {config.target_score}) at iteration {iteration}"
                )
                break

            self.progress(iteration, "improving", final_score)
            context = f"\nCONTEXT:\n{config.context}\n" if config.context else ""
            response = self.service.complete(
                IMPROVE_SYSTEM.format(context=context),
                build_improvement_directive(config.serialize(current), reflection),
            )
            try:
                current = config.parse(response)
            except Exception as e:
                logger.warning(
                    f"{config.task_name} iteration {iteration}: could not parse "
                    f"improvement, keeping current candidate ({e})"
                )
                break

        self.progress(iteration, "complete", final_score)
        return OptimizationResult(
            original=candidate,
            improved=current,
            iterations=iteration,
            final_score=final_score,
            reflections=reflections,
        )

    def optimize_prompt(self, config: PromptOptimizationConfig) -> PromptOptimizationResult:
        current = config.system_prompt
        sample_output = ""
        final_score = 0.0
        iteration = 0
        prompt_mutations: list[str] = []

        while iteration < config.max_iterations:
            iteration += 1

            self.progress(iteration, "executing", final_score)
            sample_output = self.service.complete(current, config.sample_input)

            self.progress(iteration, "evaluating", final_score)
            reflection = self.judge.evaluate(
                sample_output,
                config.dimensions,
                task_name=f'output from a "{config.prompt_name}" prompt',
            )
            final_score = reflection.overall_score / 10
            if final_score >= config.target_score:
                break

            self.progress(iteration, "reflecting", final_score)
            issues = "; ".join(m.issue for m in reflection.mutations if m.issue)
            reflect_response = self.service.complete(
                PROMPT_REFLECTION_SYSTEM.format(task_description=config.task_description),
                f"CURRENT PROMPT:\n{current}\n\n"
                f"OUTPUT PRODUCED:\n{sample_output}\n\n"
                f"OUTPUT EVALUATION:\n- Score: {reflection.overall_score:g}/10\n"
                f"- Issues: {issues or 'none listed'}\n"
                f"- Priority Fix: {reflection.priority_fix or 'none given'}",
            )

            self.progress(iteration, "mutating", final_score)
            mutate_response = self.service.complete(
                PROMPT_MUTATION_SYSTEM,
                f"ORIGINAL PROMPT:\n{current}\n\n"
                f"REFLECTION ON WEAKNESSES:\n{reflect_response}\n\n"
                f"TASK: {config.task_description}",
            )

            improved = extract_improved_prompt(mutate_response)
            if not improved or improved == current:
                logger.info(f"{config.prompt_name}: no prompt change at iteration {iteration}")
                break
            prompt_mutations.append(f"Iteration {iteration}: {reflection.priority_fix}")
            current = improved

        if current != config.system_prompt:
            improved_output = self.service.complete(current, config.sample_input)
        else:
            improved_output = sample_output

        self.progress(iteration, "complete", final_score)
        return PromptOptimizationResult(
            original_prompt=config.system_prompt,
            improved_prompt=current,
            sample_output=sample_output,
            improved_output=improved_output,
            iterations=iteration,
            final_score=final_score,
            prompt_mutations=prompt_mutations,
        )
