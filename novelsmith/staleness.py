"""Track whether a unit's composed context changed since it was last used."""

import hashlib
import math
from typing import Optional

from .context import BLOCK_SEPARATOR, ContextAssembler
from .models.story import ContentUnit
from .store import InMemoryStore


def estimate_tokens(text: str) -> int:
    # Planning heuristic: ~4 characters per token
    return math.ceil(len(text) / 4)


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class StalenessTracker:
    def __init__(self, store: InMemoryStore, assembler: Optional[ContextAssembler] = None):
        self.store = store
        self.assembler = assembler or ContextAssembler(store)

    def snapshot(self, unit: ContentUnit) -> str:
        return BLOCK_SEPARATOR.join(self.assembler.blocks_for(unit))

    def update_context_metadata(self, unit_id: str) -> Optional[ContentUnit]:
        """Recompute and persist snapshot, hash and token estimate for a unit."""
        unit = self.store.get_unit(unit_id)
        if unit is None:
            return None
        snapshot = self.snapshot(unit)
        return self.store.update_unit(
            unit_id,
            context_snapshot=snapshot,
            last_prompt_hash=hash_text(snapshot),
            context_token_estimate=estimate_tokens(snapshot),
        )

    def needs_refresh(self, unit: ContentUnit) -> bool:
        return unit.last_prompt_hash != hash_text(self.snapshot(unit))

    def stale_units(self) -> list[ContentUnit]:
        return [u for u in self.store.list_units() if self.needs_refresh(u)]
