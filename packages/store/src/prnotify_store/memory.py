"""In-memory store — nothing survives the process.

Used by `prnotify check --shadow`, which must not advance the durable
watermark, and by tests that need a store without touching the filesystem.
"""

from __future__ import annotations

from datetime import datetime, timezone

from prnotify_store.base import BaseStore
from prnotify_store.models import DEFAULT_HISTORY_LIMIT, DedupState


class MemoryStore(BaseStore):
    """Keeps the last saved state in memory.

    ``saves`` counts calls to save() so callers can tell whether a cycle
    committed.
    """

    def __init__(self, state: DedupState | None = None, history_limit: int = DEFAULT_HISTORY_LIMIT):
        super().__init__(history_limit=history_limit)
        self._state = state.copy() if state is not None else None
        self.saves = 0

    def load(self) -> DedupState:
        if self._state is None:
            return DedupState.fresh(datetime.now(timezone.utc), history_limit=self.history_limit)
        return self._state.copy()

    def save(self, state: DedupState) -> None:
        self._state = state.copy()
        self.saves += 1
