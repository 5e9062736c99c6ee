from .optimization import (
    Dimension,
    Trace,
    Mutation,
    Reflection,
    OptimizationResult,
    PromptOptimizationResult,
)
from .story import (
    DraftStatus,
    StoryState,
    Participant,
    Term,
    ContentUnit,
    SkeletonEntry,
    ValidationEntry,
    Project,
)

__all__ = [
    "Dimension",
    "Trace",
    "Mutation",
    "Reflection",
    "OptimizationResult",
    "PromptOptimizationResult",
    "DraftStatus",
    "StoryState",
    "Participant",
    "Term",
    "ContentUnit",
    "SkeletonEntry",
    "ValidationEntry",
    "Project",
]
