"""
auth/service.py -- Auth Core: registration, login, refresh, identity resolution.

AuthService is the security-critical orchestrator. It owns the rules; the
credential store (auth/store.py) and token issuer (auth/tokens.py) are
collaborators injected at construction so tests can substitute in-memory
stores and short-lived issuers.

Every failure is raised as a core.errors exception. The FastAPI dependencies
in auth/dependencies.py and the route handlers never decide status codes.

Timing equalization: login always runs bcrypt, against a dummy hash when the
email is unknown, so response time does not reveal whether an account exists.
The dummy hash is computed with the same work factor as real hashes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from auth.models import ROLE_ADMIN, ROLE_USER, Identity, User
from auth.store import UserStore
from auth.tokens import TokenIssuer, TokenPair, hash_password, verify_password
from core.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.pagination import Page, PageRequest
from core.validation import reject_nulls

if TYPE_CHECKING:
    from storage.files import LocalFileStorage, Upload

logger = logging.getLogger("portfolio.auth")

# One message for unknown email and wrong password, byte for byte.
BAD_CREDENTIALS_MESSAGE = "Invalid email or password."

# kind -> (users column, storage folder, storage file category)
_PROFILE_FILES = {
    "avatar": ("avatar", "avatars", "image"),
    "resume": ("resume_url", "resumes", "document"),
}


@dataclass(frozen=True)
class AuthResult:
    user: User
    tokens: TokenPair


class AuthService:
    def __init__(
        self,
        store: UserStore,
        issuer: TokenIssuer,
        rounds: int = 12,
        files: LocalFileStorage | None = None,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.rounds = rounds
        self.files = files
        self._dummy_hash = hash_password("portfolio_timing_dummy", rounds)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create a USER account and return it with a fresh token pair.

        Raises ConflictError when the email is taken.
        """
        if self.store.email_exists(email):
            raise ConflictError("A user with this email already exists.")
        user = User(email=email, name=name, hashed_password=hash_password(password, self.rounds), role=ROLE_USER)
        user_id = self.store.create_user(user)
        created = self.store.get_by_id(user_id)
        logger.info("Registered user %d", user_id)
        return AuthResult(user=created, tokens=self.issuer.issue(user_id))

    def login(self, email: str, password: str) -> AuthResult:
        user = self.store.get_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, self._dummy_hash)
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)
        if not verify_password(password, user.hashed_password):
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)
        return AuthResult(user=user, tokens=self.issuer.issue(user.id))

    def refresh(self, refresh_token: str | None) -> TokenPair:
        """Rotate a refresh token into a new pair.

        The presented token is not blacklisted; it stays valid until its own
        expiry, so two refreshes with the same token both succeed.
        """
        if not refresh_token:
            raise ValidationError("Refresh token is required.")
        user_id = self.issuer.verify_refresh(refresh_token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired refresh token.")
        if self.store.get_by_id(user_id) is None:
            raise AuthenticationError("User no longer exists.")
        return self.issuer.issue(user_id)

    # ------------------------------------------------------------------
    # Identity resolution and authorization
    # ------------------------------------------------------------------

    def resolve_identity(self, authorization: str | None) -> Identity:
        """Resolve an ``Authorization: Bearer <token>`` header to an Identity."""
        if not authorization:
            raise AuthenticationError("Authentication required.")
        scheme, _, token = authorization.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise AuthenticationError("Malformed authorization header.")
        user_id = self.issuer.verify_access(token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired token.")
        user = self.store.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User no longer exists.")
        return Identity.from_user(user)

    def optional_identity(self, authorization: str | None) -> Identity | None:
        """Like resolve_identity(), but any failure degrades to an anonymous caller."""
        if not authorization:
            return None
        try:
            return self.resolve_identity(authorization)
        except AuthenticationError as exc:
            logger.debug("Ignoring optional credentials: %s", exc.message)
            return None

    @staticmethod
    def authorize(identity: Identity | None, allowed_roles: Iterable[str]) -> Identity:
        if identity is None:
            raise AuthenticationError("Authentication required.")
        if identity.role not in set(allowed_roles):
            raise AuthorizationError("You do not have permission to perform this action.")
        return identity

    # ------------------------------------------------------------------
    # Account management
    # ------------------------------------------------------------------

    def get_profile(self, identity: Identity) -> User:
        user = self.store.get_by_id(identity.id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def update_password(self, identity: Identity, current_password: str | None, new_password: str | None) -> User:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required.")
        user = self.get_profile(identity)
        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationError("Current password is incorrect.")
        self.store.update_user(user.id, hashed_password=hash_password(new_password, self.rounds))
        logger.info("Password changed for user %d", user.id)
        return self.get_profile(identity)

    def update_profile(self, identity: Identity, changes: Mapping[str, Any]) -> User:
        """Apply a typed partial update to the caller's profile.

        ``changes`` holds only the fields the client sent; an explicit None
        clears a field. name is required and cannot be cleared.
        """
        reject_nulls(changes, ("name",))
        if changes:
            self.store.update_user(identity.id, **dict(changes))
        return self.get_profile(identity)

    def attach_profile_file(self, identity: Identity, kind: str, upload: Upload) -> User:
        """Store an avatar image or résumé PDF and point the profile at it.

        The previous file is removed only after the new URL is committed.
        """
        column, folder, category = _PROFILE_FILES[kind]
        user = self.get_profile(identity)
        new_url = self.files.save(upload, folder, category)
        try:
            self.store.update_user(user.id, **{column: new_url})
        except Exception:
            self.files.discard(new_url)
            raise
        previous = getattr(user, column)
        if previous:
            self.files.discard(previous)
        return self.get_profile(identity)

    def list_users(self, page: PageRequest) -> Page[User]:
        return self.store.list_users(page)

    def ensure_admin(self, email: str, password: str, name: str) -> int | None:
        """Create an ADMIN account unless the email is already registered.

        Returns the new user's id, or None when nothing was created.
        """
        if not email or not password or self.store.email_exists(email):
            return None
        user_id = self.store.create_user(
            User(email=email, name=name, hashed_password=hash_password(password, self.rounds), role=ROLE_ADMIN)
        )
        logger.info("Bootstrap admin account created (id=%d)", user_id)
        return user_id
