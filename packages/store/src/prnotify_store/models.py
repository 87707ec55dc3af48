"""Dedup state data models.

Decoupled from prnotify_core so the store layer can be used independently
of the code-review host and the notification sink.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

DEFAULT_HISTORY_LIMIT = 1000


@dataclass(frozen=True)
class TrackedPR:
    """An open pull request relevant to the watched user (assigned or authored)."""

    owner: str
    repo: str
    number: int
    title: str = ""
    url: str = ""

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"

    @property
    def identity(self) -> tuple[str, str, int]:
        return (self.owner, self.repo, self.number)


def _bounded(ids: list[str], limit: int) -> list[str]:
    """Keep only the ``limit`` most recently appended ids, oldest dropped first."""
    if limit <= 0:
        return []
    return ids[-limit:]


@dataclass
class DedupState:
    """Watermark plus the bounded history of already-notified event ids.

    Insertion order is the recency proxy for the bounded id lists: the
    oldest entries are evicted first once ``history_limit`` is exceeded.
    """

    watermark: datetime
    first_run_at: datetime
    notified_comment_ids: list[str] = field(default_factory=list)
    notified_review_ids: list[str] = field(default_factory=list)
    tracked_prs: list[TrackedPR] = field(default_factory=list)
    # Threads whose last fetch failed, keyed by TrackedPR.key, with the
    # watermark they still have to be examined from.
    thread_watermarks: dict[str, datetime] = field(default_factory=dict)
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @classmethod
    def fresh(cls, now: datetime, history_limit: int = DEFAULT_HISTORY_LIMIT) -> DedupState:
        """A first-run state: nothing notified, examine only activity after ``now``."""
        return cls(watermark=now, first_run_at=now, history_limit=history_limit)

    def copy(self) -> DedupState:
        return replace(
            self,
            notified_comment_ids=list(self.notified_comment_ids),
            notified_review_ids=list(self.notified_review_ids),
            tracked_prs=list(self.tracked_prs),
            thread_watermarks=dict(self.thread_watermarks),
        )

    def has_comment(self, event_id: str) -> bool:
        return event_id in self.notified_comment_ids

    def has_review(self, event_id: str) -> bool:
        return event_id in self.notified_review_ids

    def record_comment(self, event_id: str) -> None:
        self.notified_comment_ids.append(event_id)
        self.notified_comment_ids = _bounded(self.notified_comment_ids, self.history_limit)

    def record_review(self, event_id: str) -> None:
        self.notified_review_ids.append(event_id)
        self.notified_review_ids = _bounded(self.notified_review_ids, self.history_limit)

    def watermark_for(self, pr: TrackedPR) -> datetime:
        """Return the instant activity on ``pr`` must be examined from."""
        return self.thread_watermarks.get(pr.key, self.watermark)

    def advance(self, now: datetime) -> None:
        """Move the global watermark forward; it never moves backwards."""
        if now > self.watermark:
            self.watermark = now
