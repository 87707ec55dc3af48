"""Abstract store interface.

The change detector depends on BaseStore, not on a concrete backend, so the
durable file store can be swapped for an in-memory one (shadow runs, tests)
without touching detector code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from prnotify_store.models import DEFAULT_HISTORY_LIMIT, DedupState

logger = logging.getLogger(__name__)


class CorruptStateError(Exception):
    """The backing record exists but cannot be decoded."""


class BaseStore(ABC):
    """Persistence for the watermark and notified-id history.

    The detector is the only writer; a store is never shared between
    processes.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.history_limit = history_limit

    @abstractmethod
    def load(self) -> DedupState:
        """Return the persisted state, or a fresh one if nothing is stored yet.

        Raises CorruptStateError if a record exists but cannot be decoded.
        """

    @abstractmethod
    def save(self, state: DedupState) -> None:
        """Atomically replace the persisted state."""

    def load_or_reset(self, now: datetime) -> DedupState:
        """Load the state, falling back to a fresh one seeded with ``now``.

        A corrupt record is never replayed from the beginning of time: that
        would notify every comment ever written on every tracked PR.
        """
        try:
            return self.load()
        except CorruptStateError as e:
            logger.warning("State record is unreadable (%s); starting fresh from %s", e, now.isoformat())
            return DedupState.fresh(now, history_limit=self.history_limit)
