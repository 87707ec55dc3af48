"""Normalised activity events built from raw GitHub comments and reviews.

Events are transient: they live for one detection cycle. Only their ids are
persisted, in the store's notified-id history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from prnotify_store.models import TrackedPR

EXCERPT_LIMIT = 100
ELLIPSIS = "..."


class ReviewState(Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: str | None) -> ReviewState:
        """Map GitHub's raw review state; anything unrecognised becomes OTHER."""
        try:
            state = cls((raw or "").upper())
        except ValueError:
            return cls.OTHER
        return state


def truncate(body: str | None, limit: int = EXCERPT_LIMIT) -> str:
    """Return the first ``limit`` characters of ``body``, with an ellipsis if cut."""
    text = body or ""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def is_bot(login: str, user_type: str | None, bot_suffix: str = "[bot]") -> bool:
    """True for GitHub App / bot accounts: ``type == "Bot"`` or a ``[bot]`` login suffix."""
    if user_type and user_type.lower() == "bot":
        return True
    return bool(bot_suffix) and login.lower().endswith(bot_suffix.lower())


@dataclass(frozen=True)
class ActivityEvent:
    """Fields shared by every kind of activity on a tracked PR."""

    pr: TrackedPR
    event_id: str
    author_login: str
    author_is_bot: bool
    submitted_at: datetime
    body_excerpt: str
    permalink: str


@dataclass(frozen=True)
class CommentEvent(ActivityEvent):
    """An issue-style comment or an inline review-thread comment."""


@dataclass(frozen=True)
class ReviewEvent(ActivityEvent):
    """A submitted pull request review."""

    state: ReviewState = ReviewState.OTHER
    raw_state: str = ""
