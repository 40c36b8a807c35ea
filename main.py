#!/usr/bin/env python3
"""
Portfolio API -- management commands.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py create-admin admin@example.com --name "Site Owner"
  python main.py github-stats octocat
  python main.py github-stats octocat --json --no-cache
  python main.py purge-cache
  python main.py purge-cache --all

All commands read the same settings as the API (environment variables and
.env, see core/config.py), so they operate on the configured DATABASE_URL
and GitHub cache.
"""

import argparse
import getpass
import json
import sys
from typing import Optional

import uvicorn

from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from cache.store import ResponseCache
from core import github
from core.config import get_settings
from core.errors import AppError

_MIN_PASSWORD = 6


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_admin(args: argparse.Namespace) -> int:
    settings = get_settings()
    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < _MIN_PASSWORD:
        print(f"  [!] Password must be at least {_MIN_PASSWORD} characters.")
        return 1

    store = UserStore(db_url=settings.database_url)
    try:
        service = AuthService(store, TokenIssuer.from_settings(settings), rounds=settings.bcrypt_rounds)
        user_id = service.ensure_admin(args.email, password, args.name)
    finally:
        store.close()

    if user_id is None:
        print(f"  [!] {args.email} is already registered. Nothing created.")
        return 1
    print(f"  Admin account {args.email} created (id={user_id}).")
    return 0


def _print_stats(stats: dict) -> None:
    profile = stats.get("profile") or {}
    print(f"\n{profile.get('name') or profile.get('login')} (@{profile.get('login')})")
    print("-" * 40)
    print(f"  Repositories : {stats['total_repos']}")
    print(f"  Stars        : {stats['total_stars']}")
    print(f"  Forks        : {stats['total_forks']}")
    print(f"  Open issues  : {stats['total_open_issues']}")
    if "total_commits_this_year" in stats:
        print(f"  Commits (yr) : {stats['total_commits_this_year']}")
    if stats["languages"]:
        print("\n  Languages:")
        for lang in stats["languages"]:
            print(f"    {lang['name']:<16} {lang['count']:>3}  {lang['percentage']:>5.1f}%")
    if stats["top_repos"]:
        print("\n  Top repositories:")
        for repo in stats["top_repos"][:5]:
            print(f"    {repo['name']:<30} * {repo.get('stargazers_count', 0)}")
    print()


def _github_stats(args: argparse.Namespace) -> int:
    settings = get_settings()
    token = settings.github_token or None
    cache = None if args.no_cache else ResponseCache(settings.github_cache_path, ttl=settings.github_cache_ttl)

    def load() -> dict:
        return github.fetch_stats(args.username, token)

    try:
        # Same key as the /github/stats route, so the CLI and API share entries.
        stats = load() if cache is None else cache.get_or_set(f"github:stats:{args.username}", load)
    except AppError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        if cache is not None:
            cache.close()

    if args.json:
        print(json.dumps(stats, indent=2))
    else:
        _print_stats(stats)
    return 0


def _purge_cache(args: argparse.Namespace) -> int:
    settings = get_settings()
    cache = ResponseCache(settings.github_cache_path, ttl=settings.github_cache_ttl)
    try:
        removed = cache.invalidate("") if args.all else cache.purge_expired()
    finally:
        cache.close()
    print(f"  Removed {removed} cache entr{'y' if removed == 1 else 'ies'}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-api",
        description="Management commands for the portfolio REST backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-admin admin@example.com
  GITHUB_TOKEN=your-token python main.py github-stats octocat
  python main.py purge-cache --all
        """,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = commands.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(handler=_serve)

    admin = commands.add_parser("create-admin", help="Create an ADMIN account")
    admin.add_argument("email", help="Email address for the new account")
    admin.add_argument("--name", default="Administrator", help="Display name (default: Administrator)")
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted when omitted; avoid passing it on shared machines)",
    )
    admin.set_defaults(handler=_create_admin)

    stats = commands.add_parser("github-stats", help="Print aggregated GitHub statistics for a user")
    stats.add_argument("username", help="GitHub login")
    stats.add_argument("--json", action="store_true", help="Output raw JSON")
    stats.add_argument("--no-cache", action="store_true", help="Skip the local cache and force a fresh lookup")
    stats.set_defaults(handler=_github_stats)

    purge = commands.add_parser("purge-cache", help="Remove expired GitHub cache entries")
    purge.add_argument("--all", action="store_true", help="Remove every entry, expired or not")
    purge.set_defaults(handler=_purge_cache)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
