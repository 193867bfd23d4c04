"""Tests for src.bitbucket.puller covering listing, commit filtering and aggregation.

Run with coverage:
    pytest tests/test_puller.py --maxfail=1 -v --cov=src.bitbucket.puller --cov-report=term-missing
"""

import asyncio
import threading
from unittest.mock import patch

import pytest

from src.bitbucket.config import BitbucketSettings
from src.bitbucket.puller import BitbucketPuller, extract_email
from src.errors import RepositoryFetchFailure
from src.http_client import ApiResult
from src.models import CommitRecord

SETTINGS = BitbucketSettings(
    username="jane",
    password="app-pw",
    workspace="acme",
    emails=("jane@x.com", "jane@work.com"),
    ignore_repos=("legacy",),
)


def _page(values, next_url=""):
    return ApiResult(ok=True, status_code=200, payload={"values": values, "next": next_url})


def _commit(sha, author="Jane Doe <jane@x.com>", date="2023-01-02T10:00:00+00:00"):
    return {"hash": sha, "date": date, "author": {"raw": author}}


def _routes(table):
    """Serve fake responses keyed by URL; lists are consumed in order."""

    def fake_request(method, url, profile, body=None):
        response = table[url]
        if isinstance(response, list):
            return response.pop(0)
        return response

    return fake_request


@pytest.fixture
def puller():
    return BitbucketPuller(SETTINGS)


def test_extract_email_variants():
    assert extract_email("Jane Doe <jane@x.com>") == "jane@x.com"
    assert extract_email("no brackets here") is None
    assert extract_email(None) is None
    assert extract_email("a <b@x> c <d@y>") == "b@x"


def test_profile_uses_basic_auth(puller):
    assert puller.profile.auth == ("jane", "app-pw")


def test_urls_request_only_needed_fields(puller):
    assert puller.repos_url() == "https://api.bitbucket.org/2.0/repositories/acme?fields=next,values.slug"
    assert puller.commits_url("web").endswith(
        "/repositories/acme/web/commits/?fields=next,values.author,values.date,values.hash"
    )


@patch("src.http_client.make_request")
def test_list_repositories_paginates(mock_request, puller):
    mock_request.side_effect = [_page([{"slug": "a"}, {"slug": "b"}], "n2"), _page([{"slug": "c"}])]
    assert asyncio.run(puller.list_repositories()) == ["a", "b", "c"]


@patch("src.http_client.make_request")
def test_list_repositories_keeps_partial_listing(mock_request, puller, capsys):
    mock_request.side_effect = [_page([{"slug": "a"}], "n2"), ApiResult(ok=False, status_code=500)]
    assert asyncio.run(puller.list_repositories()) == ["a"]
    assert "stopped early" in capsys.readouterr().out


@patch("src.http_client.make_request")
def test_list_repositories_failure_returns_empty(mock_request, puller, capsys):
    mock_request.return_value = ApiResult(ok=False, status_code=401)
    assert asyncio.run(puller.list_repositories()) == []
    assert "failed to fetch repos for acme" in capsys.readouterr().out


@patch("src.http_client.make_request")
def test_fetch_commits_filters_by_identity(mock_request, puller):
    mock_request.return_value = _page([
        _commit("h1"),
        _commit("h2", author="Someone <other@x.com>"),
        _commit("h3", author="Jane <jane@work.com>"),
        _commit("h4", author="no email at all"),
    ])
    outcome = asyncio.run(puller.fetch_commits("web"))
    assert outcome.status == "ok"
    assert [c.hash for c in outcome.commits] == ["h1", "h3"]
    assert outcome.commits[0] == CommitRecord("h1", "2023-01-02T10:00:00+00:00", "jane@x.com")


@patch("src.http_client.make_request")
def test_fetch_commits_empty_identity_only_when_configured(mock_request):
    mock_request.return_value = _page([_commit("h1", author="bot")])
    settings = BitbucketSettings("u", "p", "acme", emails=("",))
    outcome = asyncio.run(BitbucketPuller(settings).fetch_commits("web"))
    assert [c.author_email for c in outcome.commits] == [""]


@patch("src.http_client.make_request")
def test_fetch_commits_ignored_repo_makes_no_calls(mock_request, puller, capsys):
    outcome = asyncio.run(puller.fetch_commits("legacy"))
    assert outcome.status == "skipped"
    assert outcome.commits == ()
    assert outcome.ok is True
    mock_request.assert_not_called()
    assert "ignoring repo legacy" in capsys.readouterr().out


@patch("src.http_client.make_request")
def test_fetch_commits_partial_pagination(mock_request, puller):
    mock_request.side_effect = _routes({
        puller.commits_url("web"): _page([_commit("h1"), _commit("x", author="o <o@o>")], "page2"),
        "page2": ApiResult(ok=False, status_code=500),
        "page3": _page([_commit("h3")]),
    })
    outcome = asyncio.run(puller.fetch_commits("web"))
    assert outcome.status == "ok"
    assert [c.hash for c in outcome.commits] == ["h1"]
    assert [call.args[1] for call in mock_request.call_args_list] == [puller.commits_url("web"), "page2"]


@patch("src.http_client.make_request")
def test_fetch_commits_first_page_failure(mock_request, puller):
    mock_request.return_value = ApiResult(ok=False, status_code=404)
    outcome = asyncio.run(puller.fetch_commits("web"))
    assert outcome.status == "failed"
    assert outcome.ok is False
    assert isinstance(outcome.error, RepositoryFetchFailure)


@patch("src.http_client.make_request")
def test_fetch_commits_no_qualifying_commits_is_not_failure(mock_request, puller, capsys):
    mock_request.return_value = _page([_commit("h1", author="Other <o@x.com>")])
    outcome = asyncio.run(puller.fetch_commits("web"))
    assert outcome.status == "ok" and outcome.commits == ()
    assert "no commits present for repo web" in capsys.readouterr().out


@patch("src.http_client.make_request")
def test_pull_all_settles_every_repo(mock_request, puller, capsys):
    table = {puller.commits_url(name): _page([_commit(f"{name}-1"), _commit(f"{name}-2")])
             for name in ("r1", "r2", "r3", "r4")}
    table[puller.commits_url("broken")] = ApiResult(ok=False, status_code=500)
    mock_request.side_effect = _routes(table)

    report = asyncio.run(puller.pull_all(["r1", "broken", "r2", "r3", "r4"]))

    assert [batch.repository for batch in report.batches] == ["r1", "r2", "r3", "r4"]
    assert all(len(batch.commits) == 2 for batch in report.batches)
    assert report.failed == ["broken"]
    assert report.ok is False
    assert report.commit_count == 8
    assert "failed to fetch commits from 1 of 5" in capsys.readouterr().out


@patch("src.http_client.make_request")
def test_pull_all_drops_empty_and_skipped_repos(mock_request, puller, capsys):
    mock_request.side_effect = _routes({
        puller.commits_url("busy"): _page([_commit("h1")]),
        puller.commits_url("quiet"): _page([]),
    })
    report = asyncio.run(puller.pull_all(["busy", "quiet", "legacy"]))
    assert [batch.repository for batch in report.batches] == ["busy"]
    assert report.skipped == ["legacy"]
    assert report.ok is True
    assert "fetched commits from 2 Bitbucket repos" in capsys.readouterr().out


def test_pull_all_converts_unexpected_exceptions(monkeypatch, puller):
    async def explode(repo, executor=None):
        raise ValueError("bad payload")

    monkeypatch.setattr(puller, "fetch_commits", explode)
    report = asyncio.run(puller.pull_all(["a"]))
    assert report.failed == ["a"]
    assert report.batches == []


def test_pull_all_without_repos_is_empty(puller):
    report = asyncio.run(puller.pull_all([]))
    assert report.batches == [] and report.ok is True


@patch("src.http_client.make_request")
def test_fetch_commits_skips_malformed_items(mock_request, puller):
    mock_request.return_value = _page([
        {"date": "2023-01-02T10:00:00+00:00", "author": {"raw": "Jane <jane@x.com>"}},
        {"hash": "", "author": {"raw": "Jane <jane@x.com>"}},
        {"hash": "h2", "author": "Jane <jane@x.com>"},
        {"hash": "h3", "author": None},
        _commit("h4"),
    ])
    outcome = asyncio.run(puller.fetch_commits("web"))
    assert outcome.status == "ok"
    assert [c.hash for c in outcome.commits] == ["h4"]


@patch("src.http_client.make_request")
def test_pull_all_keeps_every_repo_in_flight_at_once(mock_request, puller):
    repos = [f"repo-{i}" for i in range(40)]
    arrived = threading.Barrier(len(repos), timeout=10)
    peak = {"now": 0, "max": 0}
    lock = threading.Lock()

    def blocking_request(method, url, profile, body=None):
        with lock:
            peak["now"] += 1
            peak["max"] = max(peak["max"], peak["now"])
        try:
            arrived.wait()
        finally:
            with lock:
                peak["now"] -= 1
        return _page([_commit(url.split("/")[-3])])

    mock_request.side_effect = blocking_request
    report = asyncio.run(puller.pull_all(repos))

    assert report.failed == []
    assert peak["max"] == len(repos)
    assert [batch.repository for batch in report.batches] == repos
