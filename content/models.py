"""
content/models.py -- Domain dataclasses and enums for portfolio content.

These are pure data containers with zero logic. Field names match the column
names in content/store.py one-to-one, which is what lets TableRepository map
rows with ``Model(**row._mapping)`` instead of a hand-written mapper per
entity.

Dates (start_date, end_date) are ISO YYYY-MM-DD strings; timestamps
(created_at, updated_at, published_at, replied_at) are ISO 8601 UTC strings.

id is None before the record is written to the database.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PublicationStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"
    FREELANCE = "FREELANCE"


class ContactStatus(str, Enum):
    NEW = "NEW"
    READ = "READ"
    REPLIED = "REPLIED"
    ARCHIVED = "ARCHIVED"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class Category:
    """A shared grouping for projects, blog posts, and skills. Admin-managed."""

    name: str
    slug: str
    id: Optional[int] = None
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Project:
    """A portfolio project.

    Only PUBLISHED projects appear in public lists and slug lookups. featured
    and priority drive the public ordering (featured first, then priority).
    """

    title: str
    slug: str
    user_id: int
    id: Optional[int] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None  # public URL from storage/files.py
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    technologies: list[str] = field(default_factory=list)
    status: str = PublicationStatus.DRAFT.value
    featured: bool = False
    priority: int = 0
    category_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class BlogPost:
    """A blog article.

    reading_time is derived from content on every write. published_at is
    stamped the first time the post enters PUBLISHED and kept afterwards.
    """

    title: str
    slug: str
    content: str
    user_id: int
    id: Optional[int] = None
    excerpt: Optional[str] = None
    image: Optional[str] = None
    status: str = PublicationStatus.DRAFT.value
    featured: bool = False
    tags: list[str] = field(default_factory=list)
    meta_title: Optional[str] = None
    meta_desc: Optional[str] = None
    reading_time: int = 1
    published_at: Optional[str] = None
    category_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Skill:
    name: str  # stored lowercased; globally unique
    user_id: int
    id: Optional[int] = None
    level: str = SkillLevel.INTERMEDIATE.value
    years_exp: float = 0
    icon: Optional[str] = None
    category_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Experience:
    title: str
    company: str
    start_date: str
    user_id: int
    id: Optional[int] = None
    type: str = EmploymentType.FULL_TIME.value
    location: Optional[str] = None
    description: Optional[str] = None
    technologies: list[str] = field(default_factory=list)
    end_date: Optional[str] = None
    current: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Education:
    degree: str
    school: str
    start_date: str
    user_id: int
    id: Optional[int] = None
    field: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    grade: Optional[str] = None
    end_date: Optional[str] = None
    current: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Contact:
    """A message submitted through the public contact form.

    user_id is set only when the sender happened to be signed in.
    """

    name: str
    email: str
    message: str
    id: Optional[int] = None
    subject: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    status: str = ContactStatus.NEW.value
    read: bool = False
    reply: Optional[str] = None
    replied_at: Optional[str] = None
    user_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
