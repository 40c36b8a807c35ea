"""
content/store.py -- SQLAlchemy-backed persistence layer for portfolio content.

Uses SQLAlchemy Core (not ORM) so the dataclasses in content/models.py remain
the authoritative domain representation. SQLAlchemy provides a
database-agnostic abstraction: swapping SQLite for PostgreSQL is a connection
string change, not a rewrite.

Pattern: Repository + Data Mapper. ContentStore owns the schema and the
engine, and exposes one TableRepository per entity (content/repository.py).
Services never touch SQL beyond building filter predicates from the table
columns exposed here.

No foreign keys are declared: owner ids reference the users table, which
lives in auth/store.py's metadata, and category references are validated by
the services. Deleting a category detaches it from dependent rows in the same
transaction (delete_category).

Usage:
    store = ContentStore("sqlite:///portfolio.db")
    project = store.projects.insert({"title": "Site", "slug": "site", "user_id": 1})
    page = store.projects.list_page(PageRequest(), where=store.projects.table.c.status == "PUBLISHED")
    store.close()
"""

from sqlalchemy import JSON, Boolean, Column, Float, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.sql import ColumnElement

from content.models import BlogPost, Category, Contact, Education, Experience, Project, Skill
from content.repository import TableRepository
from core.database import create_store_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()


def _timestamps() -> list[Column]:
    return [
        Column("created_at", String(32), nullable=False),
        Column("updated_at", String(32), nullable=False),
    ]


_categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("slug", String(120), nullable=False, unique=True),
    Column("description", Text),
    Column("color", String(20)),
    *_timestamps(),
)

_projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(220), nullable=False, unique=True),
    Column("description", Text),
    Column("content", Text),
    Column("image", Text),
    Column("demo_url", String(500)),
    Column("github_url", String(500)),
    Column("technologies", JSON, nullable=False, default=list),
    Column("status", String(20), nullable=False, server_default="DRAFT"),
    Column("featured", Boolean, nullable=False, default=False),
    Column("priority", Integer, nullable=False, default=0),
    Column("category_id", Integer),
    Column("start_date", String(10)),  # YYYY-MM-DD
    Column("end_date", String(10)),
    *_timestamps(),
)

_blog_posts = Table(
    "blog_posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(220), nullable=False, unique=True),
    Column("content", Text, nullable=False),
    Column("excerpt", Text),
    Column("image", Text),
    Column("status", String(20), nullable=False, server_default="DRAFT"),
    Column("featured", Boolean, nullable=False, default=False),
    Column("tags", JSON, nullable=False, default=list),
    Column("meta_title", String(200)),
    Column("meta_desc", String(500)),
    Column("reading_time", Integer, nullable=False, default=1),
    Column("published_at", String(32)),
    Column("category_id", Integer),
    *_timestamps(),
)

_skills = Table(
    "skills",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("level", String(20), nullable=False, server_default="INTERMEDIATE"),
    Column("years_exp", Float, nullable=False, default=0),
    Column("icon", String(500)),
    Column("category_id", Integer),
    *_timestamps(),
)

_experiences = Table(
    "experiences",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("company", String(200), nullable=False),
    Column("type", String(20), nullable=False, server_default="FULL_TIME"),
    Column("location", String(200)),
    Column("description", Text),
    Column("technologies", JSON, nullable=False, default=list),
    Column("start_date", String(10), nullable=False),
    Column("end_date", String(10)),
    Column("current", Boolean, nullable=False, default=False),
    *_timestamps(),
)

_educations = Table(
    "educations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("degree", String(200), nullable=False),
    Column("school", String(200), nullable=False),
    Column("field", String(200)),
    Column("location", String(200)),
    Column("description", Text),
    Column("grade", String(50)),
    Column("start_date", String(10), nullable=False),
    Column("end_date", String(10)),
    Column("current", Boolean, nullable=False, default=False),
    *_timestamps(),
)

_contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer),  # NULL for anonymous submissions
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False),
    Column("subject", String(200)),
    Column("message", Text, nullable=False),
    Column("phone", String(50)),
    Column("company", String(200)),
    Column("website", String(500)),
    Column("status", String(20), nullable=False, server_default="NEW"),
    Column("read", Boolean, nullable=False, default=False),
    Column("reply", Text),
    Column("replied_at", String(32)),
    *_timestamps(),
)

# Tables whose category_id must be cleared when a category is deleted.
_CATEGORIZED = (_projects, _blog_posts, _skills)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ContentStore:
    """Owns the content schema and hands out one repository per entity."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_store_engine(db_url)
        metadata.create_all(self.engine)
        self.categories = TableRepository(self.engine, _categories, Category)
        self.projects = TableRepository(self.engine, _projects, Project)
        self.posts = TableRepository(self.engine, _blog_posts, BlogPost)
        self.skills = TableRepository(self.engine, _skills, Skill)
        self.experiences = TableRepository(self.engine, _experiences, Experience)
        self.educations = TableRepository(self.engine, _educations, Education)
        self.contacts = TableRepository(self.engine, _contacts, Contact)

    def in_category(self, table: Table, category_slug: str) -> ColumnElement:
        """Predicate: ``table.category_id`` refers to the category with ``category_slug``."""
        return table.c.category_id.in_(select(_categories.c.id).where(_categories.c.slug == category_slug))

    def delete_category(self, category_id: int) -> bool:
        """Detach a category from every dependent row and delete it, atomically."""
        with self.engine.begin() as conn:
            for table in _CATEGORIZED:
                conn.execute(table.update().where(table.c.category_id == category_id).values(category_id=None))
            result = conn.execute(_categories.delete().where(_categories.c.id == category_id))
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()
