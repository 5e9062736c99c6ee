"""Data models for rubric evaluation and reflective optimization."""

from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, Field, field_validator

T = TypeVar("T")


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _as_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(10.0, score))


class Dimension(BaseModel):
    """One weighted scoring axis. Weights are relative, not normalized."""

    name: str
    description: str
    weight: float = Field(default=1.0, ge=0)


class Trace(BaseModel):
    """Per-dimension evaluation record with quoted evidence."""

    dimension: str = ""
    score: float = 0.0
    evidence: list[str] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)
    successes: list[str] = Field(default_factory=list)

    @field_validator("evidence", "failures", "successes", mode="before")
    @classmethod
    def coerce_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> float:
        return _as_score(value)


class Mutation(BaseModel):
    """An atomic, targeted edit instruction."""

    target: str = ""
    issue: str = ""
    suggestion: str = ""
    rationale: str = ""

    def render(self) -> str:
        return f"{self.target} → {self.issue} → {self.suggestion} → {self.rationale}"


class Reflection(BaseModel):
    """Structured result of one evaluation pass."""

    traces: list[Trace] = Field(default_factory=list)
    overall_score: float = Field(
        default=0.0, validation_alias=AliasChoices("overall_score", "overallScore")
    )
    priority_fix: str = Field(
        default="", validation_alias=AliasChoices("priority_fix", "priorityFix")
    )
    mutations: list[Mutation] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> float:
        return _as_score(value)

    @field_validator("priority_fix", mode="before")
    @classmethod
    def coerce_fix(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @classmethod
    def empty(cls) -> "Reflection":
        """The zeroed reflection returned when a judge response is unusable."""
        return cls()

    def trace_summary(self) -> str:
        return "\n".join(
            f"- {t.dimension}: {t.score:g}/10 | Failures: {len(t.failures)} | "
            f"Successes: {len(t.successes)}"
            for t in self.traces
        )

    def weighted_score(self, dimensions: list[Dimension]) -> float:
        """Recompute the overall score from traces using dimension weights.

        Traces whose dimension is not in ``dimensions`` count with weight 1.
        Returns 0.0 when there are no traces.
        """
        if not self.traces:
            return 0.0
        weights = {d.name.lower(): d.weight for d in dimensions}
        total = 0.0
        weight_sum = 0.0
        for t in self.traces:
            w = weights.get(t.dimension.lower(), 1.0)
            total += t.score * w
            weight_sum += w
        return total / weight_sum if weight_sum else 0.0


class OptimizationResult(BaseModel, Generic[T]):
    original: T
    improved: T
    iterations: int = 0
    final_score: float = 0.0  # 0-1
    reflections: list[Reflection] = Field(default_factory=list)


class PromptOptimizationResult(BaseModel):
    original_prompt: str
    improved_prompt: str
    sample_output: str = ""
    improved_output: str = ""
    iterations: int = 0
    final_score: float = 0.0
    prompt_mutations: list[str] = Field(default_factory=list)
