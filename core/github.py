"""
github.py -- GitHub REST API access and repository statistics.

Fetch functions share one module-level requests.Session for connection
pooling. Any transport failure or non-404 error status is logged and raised
as UpstreamError (502); a 404 from GitHub becomes NotFoundError.

summarize_repos() is a pure function over the repository list, so the
statistics can be tested without the network.

Only the first page of repositories (up to 100) is read. Following GitHub's
pagination and handling its rate limits is left to a caching layer
(cache/store.py) in front of these calls.

Commits this year are counted per repository with per_page=1: the page
number of the Link header's rel="last" URL is the commit count. A repository
that cannot be read (empty, private, blocked) is logged and skipped, so one
bad repository never fails the whole statistics call.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

import requests

from core.errors import NotFoundError, UpstreamError

logger = logging.getLogger("portfolio.github")

GITHUB_API = "https://api.github.com"
_PER_PAGE = 100
_TOP_REPOS = 5

# Module-level session shared across all calls for connection pooling.
# max_redirects=3 replaces the requests default of 30 -- api.github.com is a
# known endpoint, 3 hops is generous and limits redirect-chain abuse.
_session = requests.Session()
_session.max_redirects = 3
_session.headers.update({"Accept": "application/vnd.github.v3+json", "User-Agent": "portfolio-api"})


def _auth_headers(token: Optional[str]) -> dict[str, str]:
    return {"Authorization": f"token {token}"} if token else {}


def _get(path: str, token: Optional[str] = None, params: Optional[dict[str, Any]] = None) -> Any:
    try:
        resp = _session.get(f"{GITHUB_API}{path}", headers=_auth_headers(token), params=params, timeout=10)
        if resp.status_code == 404:
            raise NotFoundError("GitHub user not found.")
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("GitHub request failed for %s: %s", path, e)
        raise UpstreamError("GitHub API request failed.") from e


def fetch_profile(username: str, token: Optional[str] = None) -> dict[str, Any]:
    """Return the public profile fields of a GitHub user."""
    data = _get(f"/users/{username}", token)
    return {
        "login": data.get("login"),
        "name": data.get("name"),
        "avatar_url": data.get("avatar_url"),
        "html_url": data.get("html_url"),
        "bio": data.get("bio"),
        "company": data.get("company"),
        "location": data.get("location"),
        "blog": data.get("blog"),
        "public_repos": data.get("public_repos", 0),
        "followers": data.get("followers", 0),
        "following": data.get("following", 0),
        "created_at": data.get("created_at"),
    }


def fetch_repos(username: str, token: Optional[str] = None) -> list[dict[str, Any]]:
    """Return the user's public repositories, most recently updated first."""
    data = _get(
        f"/users/{username}/repos",
        token,
        params={"per_page": _PER_PAGE, "page": 1, "sort": "updated", "direction": "desc"},
    )
    return [
        {
            "name": repo.get("name"),
            "full_name": repo.get("full_name"),
            "description": repo.get("description"),
            "html_url": repo.get("html_url"),
            "homepage": repo.get("homepage"),
            "language": repo.get("language"),
            "stargazers_count": repo.get("stargazers_count", 0),
            "forks_count": repo.get("forks_count", 0),
            "open_issues_count": repo.get("open_issues_count", 0),
            "topics": repo.get("topics", []),
            "fork": repo.get("fork", False),
            "updated_at": repo.get("updated_at"),
        }
        for repo in data
    ]


def summarize_repos(repos: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate star, fork, issue and language statistics over ``repos``.

    Language percentages are shares of repositories with a detected primary
    language, rounded to one decimal, sorted by count descending.
    """
    languages = Counter(r["language"] for r in repos if r.get("language"))
    counted = sum(languages.values())
    top = sorted(repos, key=lambda r: r.get("stargazers_count", 0), reverse=True)[:_TOP_REPOS]
    return {
        "total_repos": len(repos),
        "total_stars": sum(r.get("stargazers_count", 0) for r in repos),
        "total_forks": sum(r.get("forks_count", 0) for r in repos),
        "total_open_issues": sum(r.get("open_issues_count", 0) for r in repos),
        "languages": [
            {"name": name, "count": count, "percentage": round(count * 100 / counted, 1)}
            for name, count in sorted(languages.items(), key=lambda item: (-item[1], item[0]))
        ],
        "top_repos": [
            {
                "name": r.get("name"),
                "html_url": r.get("html_url"),
                "description": r.get("description"),
                "language": r.get("language"),
                "stargazers_count": r.get("stargazers_count", 0),
                "forks_count": r.get("forks_count", 0),
            }
            for r in top
        ],
    }


def _year_bounds(now: Optional[datetime] = None) -> tuple[str, str]:
    """ISO timestamps for Jan 1 of the current UTC year and of the next one."""
    year = (now or datetime.now(timezone.utc)).year
    return f"{year}-01-01T00:00:00Z", f"{year + 1}-01-01T00:00:00Z"


def count_commits(full_name: str, since: str, until: str, token: Optional[str] = None) -> int:
    """Number of commits in ``full_name`` ("owner/repo") between since and until.

    Raises requests.RequestException or ValueError when the repository
    cannot be read.
    """
    resp = _session.get(
        f"{GITHUB_API}/repos/{full_name}/commits",
        headers=_auth_headers(token),
        params={"since": since, "until": until, "per_page": 1},
        timeout=10,
    )
    resp.raise_for_status()
    last = resp.links.get("last")
    if last:
        pages = parse_qs(urlparse(last["url"]).query).get("page")
        return int(pages[0]) if pages else 1
    return len(resp.json())


def count_commits_this_year(
    repos: list[dict[str, Any]],
    token: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    since, until = _year_bounds(now)
    total = 0
    for repo in repos:
        full_name = repo.get("full_name")
        if not full_name:
            continue
        try:
            total += count_commits(full_name, since, until, token)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Skipping commit count for %s: %s", full_name, e)
    return total


def fetch_stats(username: str, token: Optional[str] = None) -> dict[str, Any]:
    """Profile plus aggregated repository statistics for ``username``."""
    profile = fetch_profile(username, token)
    repos = fetch_repos(username, token)
    return {
        "profile": profile,
        **summarize_repos(repos),
        "total_commits_this_year": count_commits_this_year(repos, token),
    }
