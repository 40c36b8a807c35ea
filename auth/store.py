"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as content/store.py).
UserStore is the repository; _row_to_user is the mapper. Service and route
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is enforced twice: AuthService checks email_exists()
  before insert so it can return a clean 409, and the UNIQUE column catches
  the race where two registrations pass the check concurrently (surfaced as
  IntegrityError, mapped to 409 by api/main.py).

Layer rule: no imports from api/, content/, storage/, or cache/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import PROFILE_FIELDS, User
from core.database import create_store_engine
from core.pagination import Page, PageRequest

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default="USER"),
    Column("bio", Text),
    Column("avatar", Text),  # public URL from storage/files.py
    Column("location", String(255)),
    Column("website", String(500)),
    Column("linkedin", String(500)),
    Column("github", String(500)),
    Column("twitter", String(500)),
    Column("resume_url", Text),  # public URL of the uploaded PDF
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_UPDATABLE = set(PROFILE_FIELDS) | {"hashed_password", "role"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities (the credential store).

    Usage:
        store = UserStore("sqlite:///portfolio.db")
        uid = store.create_user(User(email="a@x.com", name="Ada", hashed_password=hash_password("secret")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_store_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def email_exists(self, email: str) -> bool:
        with self.engine.connect() as conn:
            count = conn.execute(
                select(func.count()).select_from(_users).where(_users.c.email == email.lower())
            ).scalar()
        return (count or 0) > 0

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email.lower())).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, page: PageRequest) -> Page[User]:
        """Return one page of users, oldest first. Admin-only operation."""
        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_users)).scalar() or 0
            rows = conn.execute(
                _users.select().order_by(_users.c.id).limit(page.limit).offset(page.offset)
            ).fetchall()
        return Page(items=[_row_to_user(r) for r in rows], total=total, page=page.page, limit=page.limit)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        now = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email.lower(),
                    name=user.name,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    bio=user.bio,
                    avatar=user.avatar,
                    location=user.location,
                    website=user.website,
                    linkedin=user.linkedin,
                    github=user.github,
                    twitter=user.twitter,
                    resume_url=user.resume_url,
                    created_at=now,
                    updated_at=now,
                )
            )
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update profile fields, hashed_password, or role on an existing user.

        Unknown field names raise ValueError -- they can only come from a
        programming error, never from request input, since the API layer
        hands over a typed model dump.

        Returns True if a row was updated, False if user_id was not found.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        fields["updated_at"] = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        hashed_password=row.hashed_password,
        role=row.role,
        bio=row.bio,
        avatar=row.avatar,
        location=row.location,
        website=row.website,
        linkedin=row.linkedin,
        github=row.github,
        twitter=row.twitter,
        resume_url=row.resume_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
