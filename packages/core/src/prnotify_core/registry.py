"""Tracked-PR registry: the open PRs assigned to or authored by the watched user."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prnotify_core.errors import UpstreamUnavailableError
from prnotify_store.models import TrackedPR

if TYPE_CHECKING:
    from prnotify_core.gh.pull_request import GitHubSource

logger = logging.getLogger(__name__)

_QUALIFIERS = ("assignee", "author")


def merge_tracked(*batches: list[TrackedPR]) -> list[TrackedPR]:
    """Union PR lists, keeping the first occurrence of each (owner, repo, number)."""
    seen: set[tuple[str, str, int]] = set()
    merged = []
    for batch in batches:
        for pr in batch:
            if pr.identity in seen:
                continue
            seen.add(pr.identity)
            merged.append(pr)
    return merged


class TrackedPRRegistry:
    """Owns the cached list of tracked PRs.

    Each successful refresh replaces the cache wholesale, so closed or merged
    PRs silently drop out. A failed refresh keeps the previous list: stale
    but available is better than watching nothing.
    """

    def __init__(self, source: GitHubSource, prs: list[TrackedPR] | None = None):
        self._source = source
        self._prs: list[TrackedPR] = list(prs or [])

    @property
    def prs(self) -> list[TrackedPR]:
        return list(self._prs)

    def refresh(self, username: str) -> list[TrackedPR]:
        """Query assigned and authored open PRs and replace the cache.

        Raises UpstreamUnavailableError and leaves the cache untouched if
        either query fails.
        """
        batches = [self._source.search_open_pulls(qualifier, username) for qualifier in _QUALIFIERS]
        self._prs = merge_tracked(*batches)
        logger.info("Tracking %d open PR(s) for @%s", len(self._prs), username)
        return self.prs

    def refresh_or_keep(self, username: str) -> list[TrackedPR]:
        try:
            return self.refresh(username)
        except UpstreamUnavailableError as e:
            logger.warning("Could not refresh tracked PRs; keeping %d cached: %s", len(self._prs), e)
            return self.prs

    def ensure_loaded(self, username: str) -> list[TrackedPR]:
        """Cold start: refresh synchronously when nothing is cached yet.

        Raises UpstreamUnavailableError if that refresh fails.
        """
        if not self._prs:
            return self.refresh(username)
        return self.prs
