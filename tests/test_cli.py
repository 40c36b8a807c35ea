"""
tests/test_cli.py -- Tests for the management commands in main.py.

Settings are replaced with a temp-dir configuration so commands never touch
the developer's database or cache; GitHub fetches and uvicorn are patched.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

import main as cli
from auth.models import ROLE_ADMIN
from auth.store import UserStore
from cache.store import ResponseCache
from core.config import Settings
from core.errors import NotFoundError

_STATS = {
    "profile": {"login": "octocat", "name": "The Octocat"},
    "total_repos": 2,
    "total_stars": 12,
    "total_forks": 3,
    "total_open_issues": 1,
    "languages": [{"name": "Python", "count": 2, "percentage": 100.0}],
    "top_repos": [{"name": "alpha", "stargazers_count": 10}, {"name": "beta", "stargazers_count": 2}],
}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    s = Settings(
        _env_file=None,
        debug=True,
        bcrypt_rounds=4,
        database_url=f"sqlite:///{tmp_path / 'cli.db'}",
        github_cache_path=str(tmp_path / "cache" / "cli_cache.db"),
    )
    with patch("main.get_settings", return_value=s):
        yield s


class TestCreateAdmin:
    def test_creates_admin(self, settings: Settings, capsys) -> None:
        code = cli.main(["create-admin", "owner@portfolio.io", "--name", "Owner", "--password", "s3cretpass"])
        assert code == 0
        assert "created" in capsys.readouterr().out

        store = UserStore(db_url=settings.database_url)
        try:
            user = store.get_by_email("owner@portfolio.io")
        finally:
            store.close()
        assert user is not None
        assert user.role == ROLE_ADMIN
        assert user.name == "Owner"

    def test_existing_email_not_overwritten(self, settings: Settings, capsys) -> None:
        cli.main(["create-admin", "owner@portfolio.io", "--password", "s3cretpass"])
        assert cli.main(["create-admin", "owner@portfolio.io", "--password", "another1"]) == 1
        assert "already registered" in capsys.readouterr().out

    def test_short_password_rejected(self, settings: Settings) -> None:
        assert cli.main(["create-admin", "owner@portfolio.io", "--password", "abc"]) == 1

    def test_prompts_for_password(self, settings: Settings) -> None:
        with patch("main.getpass.getpass", return_value="prompted-pass") as prompt:
            assert cli.main(["create-admin", "owner@portfolio.io"]) == 0
        prompt.assert_called_once()


class TestGithubStats:
    def test_json_output_and_cache(self, settings: Settings, capsys) -> None:
        with patch("core.github.fetch_stats", return_value=_STATS) as fetch:
            assert cli.main(["github-stats", "octocat", "--json"]) == 0
            assert cli.main(["github-stats", "octocat", "--json"]) == 0
        fetch.assert_called_once()
        first = capsys.readouterr().out.split("\n}\n")[0] + "\n}"
        assert json.loads(first)["total_stars"] == 12

    def test_no_cache_always_fetches(self, settings: Settings) -> None:
        with patch("core.github.fetch_stats", return_value=_STATS) as fetch:
            cli.main(["github-stats", "octocat", "--no-cache"])
            cli.main(["github-stats", "octocat", "--no-cache"])
        assert fetch.call_count == 2

    def test_terminal_output(self, settings: Settings, capsys) -> None:
        with patch("core.github.fetch_stats", return_value=_STATS):
            cli.main(["github-stats", "octocat", "--no-cache"])
        out = capsys.readouterr().out
        assert "The Octocat (@octocat)" in out
        assert "Python" in out

    def test_upstream_error_reported(self, settings: Settings, capsys) -> None:
        with patch("core.github.fetch_stats", side_effect=NotFoundError("GitHub user not found.")):
            assert cli.main(["github-stats", "ghost", "--no-cache"]) == 1
        assert "GitHub user not found." in capsys.readouterr().out


class TestPurgeCache:
    def test_purge_expired_and_all(self, settings: Settings, capsys) -> None:
        cache = ResponseCache(settings.github_cache_path)
        cache.set("github:stats:a", {}, ttl=-1)
        cache.set("github:stats:b", {})
        cache.close()

        assert cli.main(["purge-cache"]) == 0
        assert "Removed 1 cache entry." in capsys.readouterr().out
        assert cli.main(["purge-cache", "--all"]) == 0
        assert "Removed 1 cache entry." in capsys.readouterr().out


def test_serve_runs_uvicorn() -> None:
    with patch("main.uvicorn.run") as run:
        assert cli.main(["serve", "--port", "9000"]) == 0
    run.assert_called_once_with("api.main:app", host="127.0.0.1", port=9000, reload=False)


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "usage:" in capsys.readouterr().out
