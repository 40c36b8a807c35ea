"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in content/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/, content/, storage/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"
ROLES = (ROLE_ADMIN, ROLE_USER)

# Profile fields a user may edit on their own record. Each maps 1:1 to a
# column on the users table and a field on api.models.ProfileUpdate.
PROFILE_FIELDS = (
    "name",
    "bio",
    "avatar",
    "location",
    "website",
    "linkedin",
    "github",
    "twitter",
    "resume_url",
)


@dataclass
class User:
    """An account plus its public portfolio profile.

    email is the login key and is stored lowercased so lookups are
    case-insensitive without a functional index.

    hashed_password is a bcrypt hash. It never leaves the service layer: the
    API response models have no field for it.

    id is None before the record is written to the database.
    """

    email: str
    name: str
    hashed_password: str
    role: str = ROLE_USER
    id: int | None = None
    bio: str | None = None
    avatar: str | None = None
    location: str | None = None
    website: str | None = None
    linkedin: str | None = None
    github: str | None = None
    twitter: str | None = None
    resume_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Minimal projection of the authenticated caller, resolved per request."""

    id: int
    email: str
    role: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, email=user.email, role=user.role, name=user.name)
