"""GitHub token lookup for the notifier.

Sources, first non-empty wins:
  1. GITHUB_TOKEN environment variable
  2. github_token in the config file
  3. the active GitHub CLI session (`gh auth token`, after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

GH_TIMEOUT = 5


def _gh_cli_token() -> str | None:
    try:
        proc = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=GH_TIMEOUT)
    except FileNotFoundError:
        logger.debug("gh CLI not installed; no session token available.")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("gh auth token timed out after %ds.", GH_TIMEOUT)
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def resolve_github_token(config_token: str | None = None) -> str | None:
    """Return a GitHub token, or None when no source has one.

    Does not raise. A None result is reported by settings validation
    before anything talks to GitHub.
    """
    for source, token in (("environment", os.environ.get("GITHUB_TOKEN")), ("config file", config_token)):
        if token:
            logger.debug("Using GitHub token from the %s.", source)
            return token

    token = _gh_cli_token()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token
