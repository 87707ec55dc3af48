"""Change detection: find new comments and reviews on tracked PRs and notify once.

One detection cycle:

1. Make sure the registry has PRs (cold-start refresh).
2. For each PR, fetch conversation comments and review-thread comments
   since the PR's watermark, plus all reviews (filtered locally). A failure
   on one PR skips that PR only; its watermark is held back for next time.
3. Drop self-authored and already-notified events; absorb bot events into
   the history without notifying; dispatch the rest and record their ids
   whether or not delivery succeeded.
4. Advance the watermark and save the whole state in one atomic write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from prnotify_core.errors import DeliveryError, UpstreamUnavailableError
from prnotify_core.events import ActivityEvent, CommentEvent, ReviewEvent, ReviewState, is_bot, truncate

if TYPE_CHECKING:
    from prnotify_core.gh.pull_request import GitHubSource
    from prnotify_core.notify.base import BaseDispatcher
    from prnotify_core.registry import TrackedPRRegistry
    from prnotify_store.base import BaseStore
    from prnotify_store.models import DedupState, TrackedPR

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    # Older PyGithub releases return naive UTC datetimes.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _author(raw) -> tuple[str, str | None]:
    user = getattr(raw, "user", None)
    if user is None:
        return "ghost", None
    return user.login or "ghost", getattr(user, "type", None)


@dataclass
class CycleResult:
    """Outcome of one detection cycle, carrying the committed state."""

    state: DedupState
    dispatched: list[ActivityEvent] = field(default_factory=list)
    absorbed: int = 0
    delivery_failures: int = 0
    failed_threads: list[str] = field(default_factory=list)
    persisted: bool = True
    skipped: bool = False


class ChangeDetector:
    """Runs detection cycles against a source, a store and a dispatcher.

    The detector is the store's only writer and keeps no state between
    cycles: the caller passes the current DedupState in and takes the
    committed one back from the CycleResult.
    """

    def __init__(
        self,
        source: GitHubSource,
        registry: TrackedPRRegistry,
        store: BaseStore,
        dispatcher: BaseDispatcher,
        username: str,
        bot_suffix: str = "[bot]",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.source = source
        self.registry = registry
        self.store = store
        self.dispatcher = dispatcher
        self.username = username
        self.bot_suffix = bot_suffix
        self._clock = clock

    def run_cycle(self, state: DedupState) -> CycleResult:
        # GitHub timestamps and the `since` parameter have whole-second
        # precision; a fractional watermark would hide events posted later in
        # the same second.
        cycle_started = self._clock().replace(microsecond=0)
        working = state.copy()
        result = CycleResult(state=working)

        try:
            prs = self.registry.ensure_loaded(self.username)
        except UpstreamUnavailableError as e:
            # Nothing was examined, so nothing may be advanced or saved.
            logger.error("No tracked PRs and the cold-start refresh failed: %s", e)
            result.state = state
            result.persisted = False
            result.skipped = True
            return result

        for pr in prs:
            since = working.watermark_for(pr)
            try:
                comments, reviews = self._fetch(pr, since)
                self._process_comments(pr, since, comments, working, result)
                self._process_reviews(pr, since, reviews, working, result)
            except UpstreamUnavailableError as e:
                logger.error("Skipping %s this cycle (%s): %s", pr.key, type(e).__name__, e)
            except Exception:
                # Ids recorded for other PRs (and earlier events on this one)
                # must still be committed, or they would be re-sent next cycle.
                logger.exception("Unexpected error checking %s; holding it back", pr.key)
            else:
                working.thread_watermarks.pop(pr.key, None)
                continue
            working.thread_watermarks[pr.key] = since
            result.failed_threads.append(pr.key)

        tracked = {pr.key for pr in prs}
        working.thread_watermarks = {k: v for k, v in working.thread_watermarks.items() if k in tracked}
        working.tracked_prs = list(prs)
        working.advance(cycle_started)

        try:
            self.store.save(working)
        except OSError as e:
            # The in-memory state still advances so this process does not
            # re-notify; the next successful save catches the file up.
            logger.error("Could not persist state (%s): %s", type(e).__name__, e)
            result.persisted = False

        logger.info(
            "Cycle complete: %d PR(s), %d notified, %d bot event(s) absorbed, %d failed",
            len(prs),
            len(result.dispatched),
            result.absorbed,
            len(result.failed_threads),
        )
        return result

    def _fetch(self, pr: TrackedPR, since: datetime) -> tuple[list, list]:
        comments = self.source.issue_comments(pr, since) + self.source.review_comments(pr, since)
        comments.sort(key=lambda c: _aware(c.created_at) or since)
        reviews = self.source.reviews(pr)
        return comments, reviews

    def _is_self(self, login: str) -> bool:
        return login.lower() == self.username.lower()

    def _process_comments(self, pr, since, comments, working: DedupState, result: CycleResult) -> None:
        for raw in comments:
            event_id = str(raw.id)
            login, user_type = _author(raw)
            submitted_at = _aware(raw.created_at)
            if self._is_self(login) or working.has_comment(event_id):
                continue
            # An event stamped in the watermark's own second may postdate it;
            # the id history stops it being sent twice.
            if submitted_at is None or submitted_at < since:
                continue

            event = CommentEvent(
                pr=pr,
                event_id=event_id,
                author_login=login,
                author_is_bot=is_bot(login, user_type, self.bot_suffix),
                submitted_at=submitted_at,
                body_excerpt=truncate(raw.body),
                permalink=raw.html_url or pr.url,
            )
            self._notify(event, result)
            working.record_comment(event_id)

    def _process_reviews(self, pr, since, reviews, working: DedupState, result: CycleResult) -> None:
        for raw in reviews:
            event_id = str(raw.id)
            login, user_type = _author(raw)
            submitted_at = _aware(raw.submitted_at)
            if self._is_self(login) or working.has_review(event_id):
                continue
            # Pending reviews have no submission time yet.
            if submitted_at is None or submitted_at < since:
                continue

            raw_state = raw.state or ""
            event = ReviewEvent(
                pr=pr,
                event_id=event_id,
                author_login=login,
                author_is_bot=is_bot(login, user_type, self.bot_suffix),
                submitted_at=submitted_at,
                body_excerpt=truncate(raw.body),
                permalink=raw.html_url or pr.url,
                state=ReviewState.parse(raw_state),
                raw_state=raw_state,
            )
            self._notify(event, result)
            working.record_review(event_id)

    def _notify(self, event: ActivityEvent, result: CycleResult) -> None:
        """Dispatch one event. Failures are logged, never raised.

        Bot events are absorbed without dispatch. The caller records the id
        either way: dropping one notification is preferable to re-sending
        the same event every cycle.
        """
        if event.author_is_bot:
            logger.debug("Absorbing bot event %s from %s on %s", event.event_id, event.author_login, event.pr.key)
            result.absorbed += 1
            return
        try:
            self.dispatcher.dispatch(event)
        except DeliveryError as e:
            logger.error("Could not deliver %s %s on %s: %s", type(event).__name__, event.event_id, event.pr.key, e)
            result.delivery_failures += 1
            return
        except Exception:
            logger.exception("Unexpected error dispatching %s on %s", event.event_id, event.pr.key)
            result.delivery_failures += 1
            return
        result.dispatched.append(event)
