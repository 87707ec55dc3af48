"""Base dispatcher implementing the Template Method pattern.

All sinks share the same delivery algorithm:
    dispatch() → render_message()
               → _send_with_retry() → _send()   ← only this differs per sink

Subclasses implement _send only: deliver one rendered Message or raise.
Rendering and the optional bounded retry live here so every sink formats
titles and bodies identically.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from prnotify_core.errors import DeliveryError
from prnotify_core.events import ActivityEvent, CommentEvent, ReviewEvent, ReviewState

logger = logging.getLogger(__name__)

_STATE_VERBS = {
    ReviewState.APPROVED: "approved",
    ReviewState.CHANGES_REQUESTED: "requested changes",
    ReviewState.COMMENTED: "commented",
    ReviewState.DISMISSED: "dismissed the review",
}


@dataclass(frozen=True)
class Message:
    """Sink-agnostic rendering of one activity event."""

    title: str
    body: str
    url: str
    pr_label: str
    pr_title: str
    pr_url: str
    action_label: str


def state_verb(event: ReviewEvent) -> str:
    if event.state is ReviewState.OTHER:
        return event.raw_state
    return _STATE_VERBS[event.state]


def render_message(event: ActivityEvent) -> Message:
    """Render an event into title, body and a single action link."""
    pr = event.pr
    if isinstance(event, ReviewEvent):
        kind = "review"
        body = f"{event.author_login} {state_verb(event)}"
        if event.body_excerpt:
            body += f": {event.body_excerpt}"
        url = event.permalink or pr.url
        action_label = "View review"
    elif isinstance(event, CommentEvent):
        kind = "comment"
        body = f"{event.author_login}: {event.body_excerpt}"
        url = event.permalink
        action_label = "View comment"
    else:
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    return Message(
        title=f"{pr.repo} PR #{pr.number} has a new {kind}",
        body=body,
        url=url,
        pr_label=f"{pr.repo} #{pr.number}",
        pr_title=pr.title,
        pr_url=pr.url,
        action_label=action_label,
    )


class BaseDispatcher(ABC):
    """Delivers activity events to one notification sink.

    ``retries`` is 0 by default: a failed delivery is reported once and
    dropped, never queued.
    """

    RETRY_BASE_DELAY: float = 1.0

    def __init__(self, retries: int = 0):
        self.retries = max(retries, 0)

    def dispatch(self, event: ActivityEvent) -> Message:
        """Render and deliver ``event``. Raises DeliveryError once retries are exhausted."""
        message = render_message(event)
        self._send_with_retry(message)
        return message

    @abstractmethod
    def _send(self, message: Message) -> None:
        """Deliver one message. Raise DeliveryError on failure."""

    def _send_with_retry(self, message: Message) -> None:
        attempts = self.retries + 1
        for attempt in range(attempts):
            try:
                self._send(message)
                return
            except DeliveryError as e:
                if attempt == attempts - 1:
                    raise
                delay = self.RETRY_BASE_DELAY * 2**attempt
                logger.warning(
                    "%s delivery failed (attempt %d/%d): %s. Retrying in %.0fs...",
                    self.__class__.__name__,
                    attempt + 1,
                    attempts,
                    e,
                    delay,
                )
                time.sleep(delay)
