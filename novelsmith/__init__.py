"""novelsmith: long-form narrative generation with reflective optimization and rolling context."""

from .config import Config
from .context import ContextAssembler
from .errors import ConfigError, NovelsmithError, ParseError, ServiceError, ValidationGap
from .extraction import extract_json_block, parse_json_block
from .judge import EvaluationJudge
from .optimizer import OptimizationConfig, OptimizationEngine, PromptOptimizationConfig
from .orchestrator import Orchestrator, PipelineReport
from .staleness import StalenessTracker
from .store import InMemoryStore, JsonFileStore
from .summarizer import RollingSummarizer

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ContextAssembler",
    "ConfigError",
    "NovelsmithError",
    "ParseError",
    "ServiceError",
    "ValidationGap",
    "extract_json_block",
    "parse_json_block",
    "EvaluationJudge",
    "OptimizationConfig",
    "OptimizationEngine",
    "PromptOptimizationConfig",
    "Orchestrator",
    "PipelineReport",
    "StalenessTracker",
    "InMemoryStore",
    "JsonFileStore",
    "RollingSummarizer",
]
