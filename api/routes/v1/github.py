"""
api/routes/v1/github.py -- Read-only GitHub proxy.

Routes:
  GET /github/profile/{username}  -- public profile fields
  GET /github/repos/{username}    -- public repositories, recently updated first
  GET /github/stats/{username}    -- profile plus star/fork/language aggregates

Responses are cached in app.state.cache (cache/store.py) for GITHUB_CACHE_TTL
seconds, keyed by kind and username, so repeated page loads do not spend the
GitHub rate limit. GITHUB_TOKEN, when set, is sent on every upstream call.

A username GitHub does not know is a 404; any other upstream failure is a 502.
"""

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Path, Request

from api.models import Envelope
from core import github
from core.config import get_settings

router = APIRouter()

# GitHub logins: alphanumerics and hyphens, no leading hyphen, at most 39 characters.
USERNAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9-]{0,38}$"

Username = Annotated[str, Path(pattern=USERNAME_PATTERN, description="GitHub login")]


def _cached(request: Request, kind: str, username: str, fetch: Callable[[str, str], Any]) -> Any:
    token = get_settings().github_token or None
    return request.app.state.cache.get_or_set(f"github:{kind}:{username}", lambda: fetch(username, token))


@router.get("/github/profile/{username}", response_model=Envelope[dict[str, Any]])
def github_profile(request: Request, username: Username) -> Envelope[dict[str, Any]]:
    return Envelope[dict[str, Any]](data=_cached(request, "profile", username, github.fetch_profile))


@router.get("/github/repos/{username}", response_model=Envelope[list[dict[str, Any]]])
def github_repos(request: Request, username: Username) -> Envelope[list[dict[str, Any]]]:
    return Envelope[list[dict[str, Any]]](data=_cached(request, "repos", username, github.fetch_repos))


@router.get("/github/stats/{username}", response_model=Envelope[dict[str, Any]])
def github_stats(request: Request, username: Username) -> Envelope[dict[str, Any]]:
    return Envelope[dict[str, Any]](data=_cached(request, "stats", username, github.fetch_stats))
