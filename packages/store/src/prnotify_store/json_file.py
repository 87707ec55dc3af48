"""JsonFileStore — the durable state record in a single local JSON file.

Data format (version 1):

    {
      "version": 1,
      "last_checked": "2026-10-18T09:00:00+00:00",
      "first_run_at": "2026-10-01T12:00:00+00:00",
      "notified_comments": ["1234", ...],
      "notified_reviews": ["5678", ...],
      "assigned_prs": [{"owner": ..., "repo": ..., "number": ..., "title": ..., "url": ...}],
      "thread_watermarks": {"owner/repo#42": "2026-10-18T08:55:00+00:00"}
    }

Older records missing any of these keys load with defaults (empty lists, or
the watermark for ``first_run_at``) instead of failing.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from prnotify_store.base import BaseStore, CorruptStateError
from prnotify_store.models import DEFAULT_HISTORY_LIMIT, DedupState, TrackedPR

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class JsonFileStore(BaseStore):
    """Stores the dedup state in a JSON file, replaced atomically on save.

    The file path defaults to ``~/.prnotify/state.json``. Configure via the
    config file: ``state_path: /path/to/state.json``.
    """

    def __init__(self, path: str | Path = "~/.prnotify/state.json", history_limit: int = DEFAULT_HISTORY_LIMIT):
        super().__init__(history_limit=history_limit)
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DedupState:
        if not self._path.exists():
            logger.info("No state file at %s; starting from now.", self._path)
            return DedupState.fresh(_utcnow(), history_limit=self.history_limit)

        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptStateError(f"{self._path}: {e}") from e

        if not isinstance(data, dict):
            raise CorruptStateError(f"{self._path}: expected a JSON object, got {type(data).__name__}")

        try:
            return self._from_dict(data, self.history_limit)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptStateError(f"{self._path}: {type(e).__name__}: {e}") from e

    def save(self, state: DedupState) -> None:
        """Write to a sibling temp file, fsync, then rename over the record.

        A concurrent reader sees either the previous record or the new one,
        never a partial write.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._to_dict(state), indent=2)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = tmp.name
            try:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            except BaseException:
                tmp.close()
                os.unlink(tmp_path)
                raise

        try:
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _to_dict(state: DedupState) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "last_checked": state.watermark.isoformat(),
            "first_run_at": state.first_run_at.isoformat(),
            "notified_comments": list(state.notified_comment_ids),
            "notified_reviews": list(state.notified_review_ids),
            "assigned_prs": [
                {"owner": p.owner, "repo": p.repo, "number": p.number, "title": p.title, "url": p.url}
                for p in state.tracked_prs
            ],
            "thread_watermarks": {key: ts.isoformat() for key, ts in state.thread_watermarks.items()},
        }

    @staticmethod
    def _from_dict(d: dict, history_limit: int = DEFAULT_HISTORY_LIMIT) -> DedupState:
        raw_watermark = d.get("last_checked")
        watermark = _parse_timestamp(raw_watermark) if raw_watermark else _utcnow()
        raw_first_run = d.get("first_run_at")
        first_run_at = _parse_timestamp(raw_first_run) if raw_first_run else watermark

        state = DedupState(
            watermark=watermark,
            first_run_at=first_run_at,
            notified_comment_ids=[str(i) for i in d.get("notified_comments") or []][-history_limit:],
            notified_review_ids=[str(i) for i in d.get("notified_reviews") or []][-history_limit:],
            tracked_prs=[
                TrackedPR(
                    owner=p["owner"],
                    repo=p["repo"],
                    number=int(p["number"]),
                    title=p.get("title", ""),
                    url=p.get("url", ""),
                )
                for p in d.get("assigned_prs") or []
            ],
            thread_watermarks={
                key: _parse_timestamp(ts) for key, ts in (d.get("thread_watermarks") or {}).items()
            },
            history_limit=history_limit,
        )
        return state
