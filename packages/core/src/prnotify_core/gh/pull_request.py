from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

import requests
from github import Auth, Github, GithubException

from prnotify_core.errors import UpstreamUnavailableError
from prnotify_store.models import TrackedPR

logger = logging.getLogger(__name__)

_SEARCH_QUERY = "is:pr is:open {qualifier}:{username}"


def get_client(token: str, timeout: float = 30) -> Github:
    return Github(auth=Auth.Token(token), timeout=int(timeout))


@contextmanager
def _upstream(operation: str):
    """Translate PyGithub and transport failures into UpstreamUnavailableError."""
    try:
        yield
    except GithubException as e:
        raise UpstreamUnavailableError(f"{operation}: GitHub returned {e.status}: {e.data}") from e
    except requests.RequestException as e:
        raise UpstreamUnavailableError(f"{operation}: {type(e).__name__}: {e}") from e


def parse_pull_url(html_url: str) -> tuple[str, str]:
    """``https://github.com/acme/widgets/pull/42`` → ``("acme", "widgets")``."""
    parts = html_url.rstrip("/").split("/")
    if len(parts) < 5 or parts[-2] != "pull":
        raise ValueError(f"Unrecognised pull request URL: {html_url!r}")
    return parts[-4], parts[-3]


class GitHubSource:
    """Read-only view of the GitHub API used by the registry and detector.

    Every method fully materialises PyGithub's lazy paginated lists inside
    the error guard, so a page fetch failing midway surfaces here rather
    than in the caller's loop.
    """

    def __init__(self, client: Github):
        self._gh = client

    def search_open_pulls(self, qualifier: str, username: str) -> list[TrackedPR]:
        """Return open PRs where ``qualifier`` (``assignee``/``author``) is ``username``."""
        query = _SEARCH_QUERY.format(qualifier=qualifier, username=username)
        with _upstream(f"search {query!r}"):
            results = list(self._gh.search_issues(query))
        prs = []
        for issue in results:
            try:
                owner, repo = parse_pull_url(issue.html_url)
            except ValueError as e:
                logger.warning("Ignoring search result: %s", e)
                continue
            prs.append(
                TrackedPR(owner=owner, repo=repo, number=issue.number, title=issue.title or "", url=issue.html_url)
            )
        return prs

    def _get_pull(self, pr: TrackedPR):
        return self._gh.get_repo(f"{pr.owner}/{pr.repo}", lazy=True).get_pull(pr.number)

    def issue_comments(self, pr: TrackedPR, since: datetime) -> list:
        """Conversation comments on the PR updated at or after ``since``."""
        with _upstream(f"issue comments for {pr.key}"):
            issue = self._gh.get_repo(f"{pr.owner}/{pr.repo}", lazy=True).get_issue(pr.number)
            return list(issue.get_comments(since=since))

    def review_comments(self, pr: TrackedPR, since: datetime) -> list:
        """Inline review-thread comments on the PR updated at or after ``since``."""
        with _upstream(f"review comments for {pr.key}"):
            return list(self._get_pull(pr).get_review_comments(since=since))

    def reviews(self, pr: TrackedPR) -> list:
        """All reviews on the PR; GitHub offers no ``since`` filter for these."""
        with _upstream(f"reviews for {pr.key}"):
            return list(self._get_pull(pr).get_reviews())
