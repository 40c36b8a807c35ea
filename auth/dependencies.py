"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

All three helpers read the Authorization header and delegate to the
AuthService held on app.state.auth:

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() raises AuthenticationError (401) if unauthenticated.
require_roles(*roles) builds a dependency that also raises
AuthorizationError (403) when the caller's role is not allowed.
require_admin is require_roles(ROLE_ADMIN).

Errors raised here propagate to the exception handlers in api/main.py, which
render the standard error envelope.

Layer rule: no imports from content/, storage/, or cache/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.models import ROLE_ADMIN, Identity
from auth.service import AuthService


def _auth(request: Request) -> AuthService:
    return request.app.state.auth


def try_get_current_user(request: Request) -> Identity | None:
    """Return the caller's Identity, or None for anonymous/invalid credentials."""
    return _auth(request).optional_identity(request.headers.get("Authorization"))


def get_current_user(request: Request) -> Identity:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_user)): ...
    """
    return _auth(request).resolve_identity(request.headers.get("Authorization"))


def require_roles(*roles: str) -> Callable[[Request], Identity]:
    """Return a dependency that requires one of ``roles``."""

    def dependency(request: Request) -> Identity:
        identity = get_current_user(request)
        return AuthService.authorize(identity, roles)

    return dependency


require_admin = require_roles(ROLE_ADMIN)
