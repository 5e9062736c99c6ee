"""Judge: score a candidate against a weighted rubric and extract mutations."""

from typing import Optional

from loguru import logger
from pydantic import ValidationError

from .errors import ParseError
from .extraction import parse_json_block
from .models.optimization import Dimension, Reflection
from .service import GenerationService

SYSTEM = """You are an expert evaluator performing a multi-dimensional assessment.

TASK: Analyze the provided content and extract an evaluation trace for each dimension.
{context}
EVALUATION DIMENSIONS:
{dimensions}

For each dimension, you must:
1. Score it from 0-10
2. Extract CONCRETE EVIDENCE from the content (direct quotes or specific observations)
3. Identify specific FAILURES (with exact quotes showing the problem)
4. Identify specific SUCCESSES (with exact quotes showing what works)

OUTPUT FORMAT (JSON):
{{
  "traces": [
    {{
      "dimension": "dimension name",
      "score": 7,
      "evidence": ["quote or observation from content"],
      "failures": ["specific failure with quote: 'problematic text'"],
      "successes": ["specific success with quote: 'good text'"]
    }}
  ],
  "overall_score": 7.5,
  "priority_fix": "The single most impactful improvement to make",
  "mutations": [
    {{
      "target": "what to change",
      "issue": "why it is problematic",
      "suggestion": "specific replacement or fix",
      "rationale": "why this mutation will improve the score"
    }}
  ]
}}

RULES:
- Always include direct quotes as evidence
- Failures must cite the exact problematic text
- Mutations must be actionable, specific, and atomic
- overall_score is the weighted average of the dimension scores

Output ONLY the JSON object."""


def build_evaluation_prompt(dimensions: list[Dimension], context: Optional[str] = None) -> str:
    dimension_list = "\n".join(
        f"{i}. **{d.name}** (weight: {d.weight:g}): {d.description}"
        for i, d in enumerate(dimensions, 1)
    )
    context_block = f"\nCONTEXT:\n{context}\n" if context else ""
    return SYSTEM.format(context=context_block, dimensions=dimension_list)


def parse_reflection(raw: str, dimensions: Optional[list[Dimension]] = None) -> Reflection:
    """Parse a judge response. Raises ParseError when it has no usable object."""
    data = parse_json_block(raw, default=None)
    if not isinstance(data, dict):
        raise ParseError("Judge response contained no JSON object", raw=raw)
    try:
        reflection = Reflection.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Judge response has the wrong shape: {e}", raw=raw) from e

    # Some models only score the dimensions; derive the weighted total
    if "overall_score" not in data and "overallScore" not in data:
        reflection.overall_score = reflection.weighted_score(dimensions or [])
    return reflection


class EvaluationJudge:
    def __init__(self, service: GenerationService):
        self.service = service

    def evaluate(
        self,
        candidate_text: str,
        dimensions: list[Dimension],
        context: Optional[str] = None,
        task_name: str = "content",
    ) -> Reflection:
        """Score ``candidate_text``; unusable responses yield a zeroed Reflection."""
        system = build_evaluation_prompt(dimensions, context)
        raw = self.service.complete(system, f"Evaluate this {task_name}:\n\n{candidate_text}")
        try:
            reflection = parse_reflection(raw, dimensions)
        except ParseError as e:
            logger.warning(f"Evaluation of {task_name} unusable, scoring 0: {e}")
            return Reflection.empty()
        logger.info(
            f"Evaluated {task_name}: {reflection.overall_score:.1f}/10, "
            f"{len(reflection.mutations)} mutation(s)"
        )
        return reflection
