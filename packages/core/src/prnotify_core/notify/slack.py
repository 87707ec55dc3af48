from __future__ import annotations

from datetime import datetime

import requests

from prnotify_core.errors import DeliveryError
from prnotify_core.notify.base import BaseDispatcher, Message


class SlackDispatcher(BaseDispatcher):
    """Posts each message to a Slack incoming webhook as Block Kit blocks."""

    def __init__(
        self,
        webhook_url: str,
        channel: str = "",
        username: str = "GitHub PR Notifier",
        icon_emoji: str = ":bell:",
        timeout: float = 30,
        retries: int = 0,
        session: requests.Session | None = None,
    ):
        super().__init__(retries=retries)
        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.icon_emoji = icon_emoji
        self.timeout = timeout
        self._session = session or requests.Session()

    def build_payload(self, message: Message) -> dict:
        pr_line = f"*PR:* <{message.pr_url}|{message.pr_label}>"
        if message.pr_title:
            pr_line += f" - {message.pr_title}"
        blocks = [
            {"type": "header", "text": {"type": "plain_text", "text": message.title, "emoji": True}},
            {"type": "section", "text": {"type": "mrkdwn", "text": pr_line}},
            {"type": "section", "text": {"type": "mrkdwn", "text": message.body or " "}},
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": message.action_label, "emoji": True},
                        "url": message.url,
                    }
                ],
            },
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": f"Notified at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"}
                ],
            },
        ]
        payload = {
            "username": self.username,
            "icon_emoji": self.icon_emoji,
            "text": f"{message.title}\n{message.body}",
            "blocks": blocks,
        }
        if self.channel:
            payload["channel"] = self.channel
        return payload

    def _send(self, message: Message) -> None:
        try:
            response = self._session.post(self.webhook_url, json=self.build_payload(message), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DeliveryError(f"Slack webhook: {type(e).__name__}: {e}") from e
