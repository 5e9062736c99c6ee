"""Persisted overrides for stage prompts produced by prompt optimization."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from .prompts import PROMPTS


class StoredPrompt(BaseModel):
    key: str
    name: str = ""
    original_prompt: str
    improved_prompt: str
    score: float = 0.0
    mutations: list[str] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


class PromptLibrary:
    """Lookup of stage prompts, preferring improved versions when present.

    With a ``path`` the library is loaded from and saved to YAML; without
    one it lives in memory only.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self.improved: dict[str, StoredPrompt] = {}
        if self.path and self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            for key, entry in data.items():
                self.improved[key] = StoredPrompt(key=key, **entry)
            logger.info(f"Loaded {len(self.improved)} improved prompt(s) from {self.path}")

    def get(self, key: str) -> str:
        if key in self.improved:
            return self.improved[key].improved_prompt
        try:
            return PROMPTS[key]
        except KeyError:
            raise KeyError(
                f"Unknown prompt '{key}'. Available: {', '.join(sorted(PROMPTS))}"
            ) from None

    def has_improved(self, key: str) -> bool:
        return key in self.improved

    def save_improved(
        self,
        key: str,
        original_prompt: str,
        improved_prompt: str,
        score: float,
        mutations: list[str],
        name: str = "",
    ) -> StoredPrompt:
        now = datetime.now(timezone.utc).isoformat()
        existing = self.improved.get(key)
        entry = StoredPrompt(
            key=key,
            name=name or key,
            original_prompt=original_prompt,
            improved_prompt=improved_prompt,
            score=score,
            mutations=mutations,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.improved[key] = entry
        self._save()
        return entry

    def reset(self, key: str) -> bool:
        """Drop an improved prompt so the built-in template is used again."""
        if self.improved.pop(key, None) is None:
            return False
        self._save()
        return True

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {k: v.model_dump(exclude={"key"}) for k, v in self.improved.items()}
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=True)
