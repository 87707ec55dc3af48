"""Tests for the GitHub source adapter."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests
from github import GithubException

from prnotify_core.errors import UpstreamUnavailableError
from prnotify_core.gh.pull_request import GitHubSource, parse_pull_url
from prnotify_store.models import TrackedPR

PR = TrackedPR("acme", "widgets", 42, "Add gear ratio", "https://github.com/acme/widgets/pull/42")
SINCE = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def _search_item(owner, repo, number, title="A PR"):
    item = MagicMock()
    item.number = number
    item.title = title
    item.html_url = f"https://github.com/{owner}/{repo}/pull/{number}"
    return item


class TestParsePullUrl:
    def test_github_url(self):
        assert parse_pull_url("https://github.com/acme/widgets/pull/42") == ("acme", "widgets")

    def test_enterprise_url(self):
        assert parse_pull_url("https://git.example.com/acme/widgets/pull/7/") == ("acme", "widgets")

    def test_issue_url_rejected(self):
        with pytest.raises(ValueError):
            parse_pull_url("https://github.com/acme/widgets/issues/42")


class TestSearchOpenPulls:
    def test_builds_query_and_parses_results(self):
        gh = MagicMock()
        gh.search_issues.return_value = [_search_item("acme", "widgets", 42, "Add gear ratio")]

        prs = GitHubSource(gh).search_open_pulls("assignee", "octocat")

        gh.search_issues.assert_called_once_with("is:pr is:open assignee:octocat")
        assert prs == [PR]

    def test_unparseable_result_skipped(self):
        gh = MagicMock()
        odd = _search_item("acme", "widgets", 7)
        odd.html_url = "https://github.com/acme/widgets/issues/7"
        gh.search_issues.return_value = [odd, _search_item("acme", "widgets", 42, "Add gear ratio")]

        assert GitHubSource(gh).search_open_pulls("assignee", "octocat") == [PR]

    def test_github_error_becomes_upstream_unavailable(self):
        gh = MagicMock()
        gh.search_issues.side_effect = GithubException(401, {"message": "Bad credentials"}, None)

        with pytest.raises(UpstreamUnavailableError, match="401"):
            GitHubSource(gh).search_open_pulls("author", "octocat")


class TestThreadReads:
    def test_issue_comments_passes_since(self):
        gh = MagicMock()
        issue = gh.get_repo.return_value.get_issue.return_value
        issue.get_comments.return_value = iter(["c1", "c2"])

        comments = GitHubSource(gh).issue_comments(PR, SINCE)

        gh.get_repo.assert_called_once_with("acme/widgets", lazy=True)
        gh.get_repo.return_value.get_issue.assert_called_once_with(42)
        issue.get_comments.assert_called_once_with(since=SINCE)
        assert comments == ["c1", "c2"]

    def test_review_comments_passes_since(self):
        gh = MagicMock()
        pull = gh.get_repo.return_value.get_pull.return_value
        pull.get_review_comments.return_value = ["rc1"]

        assert GitHubSource(gh).review_comments(PR, SINCE) == ["rc1"]
        pull.get_review_comments.assert_called_once_with(since=SINCE)

    def test_reviews_fetches_all(self):
        gh = MagicMock()
        pull = gh.get_repo.return_value.get_pull.return_value
        pull.get_reviews.return_value = ["r1", "r2"]

        assert GitHubSource(gh).reviews(PR) == ["r1", "r2"]

    def test_timeout_becomes_upstream_unavailable(self):
        gh = MagicMock()
        gh.get_repo.return_value.get_pull.return_value.get_reviews.side_effect = requests.exceptions.ReadTimeout(
            "read timed out"
        )

        with pytest.raises(UpstreamUnavailableError, match="ReadTimeout"):
            GitHubSource(gh).reviews(PR)

    def test_failure_during_pagination_is_translated(self):
        def pages():
            yield "c1"
            raise GithubException(502, {"message": "Bad Gateway"}, None)

        gh = MagicMock()
        gh.get_repo.return_value.get_issue.return_value.get_comments.return_value = pages()

        with pytest.raises(UpstreamUnavailableError):
            GitHubSource(gh).issue_comments(PR, SINCE)
