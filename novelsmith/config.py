import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
import yaml

API_KEY_ENV = "NOVELSMITH_API_KEY"


class ServiceConfig(BaseModel):
    provider: Literal["openai", "gemini"] = Field(default="openai")
    api_key: str = Field(default="")
    model: str = Field(default="openai/gpt-4o-mini")
    base_url: Optional[str] = Field(default="https://openrouter.ai/api/v1")
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0)

    @field_validator("api_key", mode="after")
    @classmethod
    def key_from_env(cls, value: str) -> str:
        return value or os.environ.get(API_KEY_ENV, "")


class OptimizerSettings(BaseModel):
    enabled: bool = Field(default=False)
    max_iterations: int = Field(default=2, gt=0)
    target_score: float = Field(default=0.85, gt=0, le=1)


class GenerationSettings(BaseModel):
    unit_count: int = Field(default=10, gt=0)
    overwrite: bool = Field(default=False)
    stream: bool = Field(default=False)
    summary_min_words: int = Field(default=80, gt=0)
    summary_max_words: int = Field(default=150, gt=0)


class StorageSettings(BaseModel):
    project_file: Path = Field(default=Path("project.json"))
    prompt_library_file: Path = Field(default=Path("prompts.yaml"))


class Config(BaseModel):
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    optimizer: OptimizerSettings = Field(default_factory=OptimizerSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
