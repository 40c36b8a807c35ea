"""
content/services.py -- The resource access pattern, bound to each entity.

ResourceService carries the rules every entity shares:

  list_*        -- paginated; public variants filter to published rows,
                   owner variants filter by the caller's id and an optional
                   status (unrecognized status values are ignored).
  get_*         -- NotFoundError when absent, and on public reads also when the
                   row exists but is unpublished. Callers cannot tell which.
  create        -- ownership bound to the caller; an optional upload is saved
                   first and discarded again if the insert fails.
  update        -- typed partial update (absent / value / explicit null);
                   explicit null on a required field is a ValidationError.
                   Non-owners (other than ADMIN) get NotFoundError. A new
                   upload replaces the old one; the old file is discarded only
                   after the row update has committed.
  delete        -- NotFoundError when absent; stored file discarded after the
                   row is gone.

Entity subclasses supply the table, ordering, and the prepare_create /
prepare_update hooks (slug derivation, uniqueness pre-checks, temporal
invariant, reading time).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Optional, TypeVar

from sqlalchemy import String, and_, cast
from sqlalchemy.sql import ColumnElement

from auth.models import Identity
from content.models import (
    BlogPost,
    Category,
    Contact,
    ContactStatus,
    Education,
    Experience,
    Project,
    PublicationStatus,
    Skill,
)
from content.repository import TableRepository, now_iso
from content.store import ContentStore
from core.errors import ConflictError, NotFoundError, ValidationError
from core.mailer import Mailer
from core.pagination import Page, PageRequest
from core.validation import coerce_enum, ensure_date_range, reading_time, reject_nulls, slugify
from storage.files import LocalFileStorage, Upload

logger = logging.getLogger("portfolio.content")

T = TypeVar("T")


def _merged(existing: Any, changes: Mapping[str, Any], name: str) -> Any:
    return changes[name] if name in changes else getattr(existing, name)


class ResourceService(Generic[T]):
    label = "Resource"
    owned = True
    # Fields that may be omitted from an update but never set to null.
    required: Sequence[str] = ()
    file_field: Optional[str] = None
    file_folder = ""
    default_limit = 10
    status_enum: Optional[type] = None

    def __init__(self, store: ContentStore, files: Optional[LocalFileStorage] = None) -> None:
        self.store = store
        self.files = files

    @property
    def repo(self) -> TableRepository[T]:
        raise NotImplementedError

    @property
    def table(self):
        return self.repo.table

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def order_by(self) -> Sequence[ColumnElement]:
        return (self.table.c.created_at.desc(),)

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        return values

    def prepare_update(self, existing: T, changes: dict[str, Any]) -> dict[str, Any]:
        return changes

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def page_request(self, page: Any = None, limit: Any = None) -> PageRequest:
        return PageRequest.parse(page, limit, default_limit=self.default_limit)

    def list_page(self, page: PageRequest, where: Optional[ColumnElement] = None) -> Page[T]:
        return self.repo.list_page(page, where=where, order_by=self.order_by())

    def list_owned(self, identity: Identity, page: PageRequest, status: Optional[str] = None) -> Page[T]:
        """List the caller's own rows, newest first, optionally narrowed by status."""
        where = self.table.c.user_id == identity.id
        wanted = coerce_enum(status, self.status_enum) if self.status_enum else None
        if wanted is not None:
            where = and_(where, self.table.c.status == wanted.value)
        return self.repo.list_page(page, where=where, order_by=(self.table.c.created_at.desc(),))

    def get(self, row_id: int) -> T:
        row = self.repo.get(row_id)
        if row is None:
            raise self._not_found()
        return row

    def get_for_write(self, row_id: int, identity: Identity) -> T:
        """Fetch a row the caller may modify; other owners' rows look absent."""
        row = self.repo.get(row_id)
        if row is None:
            raise self._not_found()
        if self.owned and not identity.is_admin and getattr(row, "user_id") != identity.id:
            raise self._not_found()
        return row

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, identity: Identity, data: Mapping[str, Any], upload: Optional[Upload] = None) -> T:
        values = self.prepare_create(dict(data))
        if self.owned:
            values["user_id"] = identity.id
        created = self._write_with_upload(upload, values, self.repo.insert)
        logger.info("%s %d created by user %d", self.label, getattr(created, "id"), identity.id)
        return created

    def update(
        self,
        row_id: int,
        identity: Identity,
        changes: Mapping[str, Any],
        upload: Optional[Upload] = None,
    ) -> T:
        existing = self.get_for_write(row_id, identity)
        changes = dict(changes)
        reject_nulls(changes, self.required)
        values = self.prepare_update(existing, changes)
        if not values and upload is None:
            return existing
        updated = self._write_with_upload(upload, values, lambda v: self.repo.update(row_id, v))
        if updated is None:
            # Deleted concurrently between the lookup and the write.
            raise self._not_found()
        if upload is not None and self.files is not None:
            self.files.discard(getattr(existing, self.file_field))
        return updated

    def delete(self, row_id: int, identity: Identity) -> None:
        existing = self.get_for_write(row_id, identity)
        if not self._remove(existing):
            raise self._not_found()
        if self.file_field and self.files is not None:
            self.files.discard(getattr(existing, self.file_field))
        logger.info("%s %d deleted by user %d", self.label, row_id, identity.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remove(self, row: T) -> bool:
        return self.repo.delete(getattr(row, "id"))

    def _write_with_upload(self, upload: Optional[Upload], values: dict[str, Any], write: Callable[[dict], Any]):
        new_url = None
        if upload is not None:
            if self.file_field is None or self.files is None:
                raise ValidationError(f"{self.label} does not accept file uploads.")
            new_url = self.files.save(upload, self.file_folder, "image")
            values[self.file_field] = new_url
        try:
            result = write(values)
        except Exception:
            if new_url is not None:
                self.files.discard(new_url)
            raise
        if result is None and new_url is not None:
            self.files.discard(new_url)
        return result

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found.")

    # Shared rule helpers -------------------------------------------------

    def _check_category(self, values: Mapping[str, Any]) -> None:
        category_id = values.get("category_id")
        if category_id is not None and self.store.categories.get(category_id) is None:
            raise ValidationError(f"Category {category_id} does not exist.")

    def _assign_slug(self, values: dict[str, Any], source: str, exclude_id: Optional[int] = None) -> None:
        """Normalize or derive ``values['slug']`` and pre-check its uniqueness."""
        raw = values.get("slug") or values.get(source) or ""
        slug = slugify(raw)
        if not slug:
            raise ValidationError("Slug must contain at least one letter or digit.")
        criteria = [self.table.c.slug == slug]
        if exclude_id is not None:
            criteria.append(self.table.c.id != exclude_id)
        if self.repo.exists(*criteria):
            raise ConflictError(f"A {self.label.lower()} with slug '{slug}' already exists.")
        values["slug"] = slug

    @staticmethod
    def _check_dates(existing: Any, values: Mapping[str, Any]) -> None:
        if existing is None:
            ensure_date_range(values.get("start_date"), values.get("end_date"))
        else:
            ensure_date_range(_merged(existing, values, "start_date"), _merged(existing, values, "end_date"))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryService(ResourceService[Category]):
    label = "Category"
    owned = False
    required = ("name", "slug")
    default_limit = 20

    @property
    def repo(self) -> TableRepository[Category]:
        return self.store.categories

    def order_by(self) -> Sequence[ColumnElement]:
        return (self.table.c.name.asc(),)

    def get_by_slug(self, slug: str) -> Category:
        category = self.repo.find_one(self.table.c.slug == slug)
        if category is None:
            raise self._not_found()
        return category

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        self._check_name(values["name"])
        self._assign_slug(values, "name")
        return values

    def prepare_update(self, existing: Category, changes: dict[str, Any]) -> dict[str, Any]:
        if "name" in changes and changes["name"] != existing.name:
            self._check_name(changes["name"], exclude_id=existing.id)
        if "slug" in changes:
            self._assign_slug(changes, "name", exclude_id=existing.id)
        return changes

    def _check_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        criteria = [self.table.c.name == name]
        if exclude_id is not None:
            criteria.append(self.table.c.id != exclude_id)
        if self.repo.exists(*criteria):
            raise ConflictError(f"A category named '{name}' already exists.")

    def _remove(self, row: Category) -> bool:
        return self.store.delete_category(row.id)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectService(ResourceService[Project]):
    label = "Project"
    required = ("title", "slug", "status", "featured", "priority", "technologies")
    file_field = "image"
    file_folder = "projects"
    status_enum = PublicationStatus

    @property
    def repo(self) -> TableRepository[Project]:
        return self.store.projects

    def order_by(self) -> Sequence[ColumnElement]:
        c = self.table.c
        return (c.featured.desc(), c.priority.desc(), c.created_at.desc())

    def list_public(
        self,
        page: PageRequest,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
    ) -> Page[Project]:
        where = self.table.c.status == PublicationStatus.PUBLISHED.value
        if category:
            where = and_(where, self.store.in_category(self.table, category))
        if featured:
            where = and_(where, self.table.c.featured.is_(True))
        return self.list_page(page, where)

    def get_published(self, slug: str) -> Project:
        project = self.repo.find_one(
            self.table.c.slug == slug,
            self.table.c.status == PublicationStatus.PUBLISHED.value,
        )
        if project is None:
            raise self._not_found()
        return project

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        self._assign_slug(values, "title")
        self._check_dates(None, values)
        self._check_category(values)
        return values

    def prepare_update(self, existing: Project, changes: dict[str, Any]) -> dict[str, Any]:
        if "slug" in changes:
            self._assign_slug(changes, "title", exclude_id=existing.id)
        self._check_dates(existing, changes)
        self._check_category(changes)
        return changes


# ---------------------------------------------------------------------------
# Blog posts
# ---------------------------------------------------------------------------


class BlogService(ResourceService[BlogPost]):
    label = "Post"
    required = ("title", "slug", "content", "status", "featured", "tags")
    file_field = "image"
    file_folder = "blog"
    status_enum = PublicationStatus

    @property
    def repo(self) -> TableRepository[BlogPost]:
        return self.store.posts

    def order_by(self) -> Sequence[ColumnElement]:
        c = self.table.c
        return (c.published_at.desc(), c.created_at.desc())

    def list_public(
        self,
        page: PageRequest,
        category: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Page[BlogPost]:
        where = self.table.c.status == PublicationStatus.PUBLISHED.value
        if category:
            where = and_(where, self.store.in_category(self.table, category))
        if tag:
            # tags is a JSON array; match the element serialized the way the
            # engine writes it (core/database.py, ensure_ascii=False).
            needle = json.dumps(tag, ensure_ascii=False)
            where = and_(where, cast(self.table.c.tags, String).contains(needle, autoescape=True))
        return self.list_page(page, where)

    def get_published(self, slug: str) -> BlogPost:
        post = self.repo.find_one(
            self.table.c.slug == slug,
            self.table.c.status == PublicationStatus.PUBLISHED.value,
        )
        if post is None:
            raise self._not_found()
        return post

    def publish(self, row_id: int, identity: Identity) -> BlogPost:
        post = self.get_for_write(row_id, identity)
        if post.status == PublicationStatus.PUBLISHED.value:
            raise ValidationError("Post is already published.")
        updated = self.repo.update(
            row_id,
            {"status": PublicationStatus.PUBLISHED.value, "published_at": post.published_at or now_iso()},
        )
        if updated is None:
            raise self._not_found()
        logger.info("Post %d published by user %d", row_id, identity.id)
        return updated

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        self._assign_slug(values, "title")
        self._check_category(values)
        values["reading_time"] = reading_time(values["content"])
        if values.get("status") == PublicationStatus.PUBLISHED.value:
            values["published_at"] = now_iso()
        return values

    def prepare_update(self, existing: BlogPost, changes: dict[str, Any]) -> dict[str, Any]:
        if "slug" in changes:
            self._assign_slug(changes, "title", exclude_id=existing.id)
        self._check_category(changes)
        if "content" in changes:
            changes["reading_time"] = reading_time(changes["content"])
        if changes.get("status") == PublicationStatus.PUBLISHED.value and existing.published_at is None:
            changes["published_at"] = now_iso()
        return changes


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


class SkillService(ResourceService[Skill]):
    label = "Skill"
    required = ("name", "level", "years_exp")

    @property
    def repo(self) -> TableRepository[Skill]:
        return self.store.skills

    def order_by(self) -> Sequence[ColumnElement]:
        c = self.table.c
        return (c.years_exp.desc(), c.created_at.desc())

    def list_public(self, page: PageRequest, category: Optional[str] = None) -> Page[Skill]:
        where = self.store.in_category(self.table, category) if category else None
        return self.list_page(page, where)

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        values["name"] = self._unique_name(values["name"])
        self._check_category(values)
        return values

    def prepare_update(self, existing: Skill, changes: dict[str, Any]) -> dict[str, Any]:
        if changes.get("name") is not None:
            changes["name"] = self._unique_name(changes["name"], exclude_id=existing.id)
        self._check_category(changes)
        return changes

    def _unique_name(self, name: str, exclude_id: Optional[int] = None) -> str:
        normalized = name.strip().lower()
        criteria = [self.table.c.name == normalized]
        if exclude_id is not None:
            criteria.append(self.table.c.id != exclude_id)
        if self.repo.exists(*criteria):
            raise ConflictError(f"Skill '{normalized}' already exists.")
        return normalized


# ---------------------------------------------------------------------------
# Experience and education
# ---------------------------------------------------------------------------


class ExperienceService(ResourceService[Experience]):
    label = "Experience"
    required = ("title", "company", "start_date", "type", "technologies", "current")

    @property
    def repo(self) -> TableRepository[Experience]:
        return self.store.experiences

    def order_by(self) -> Sequence[ColumnElement]:
        return (self.table.c.start_date.desc(),)

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        self._check_dates(None, values)
        return values

    def prepare_update(self, existing: Experience, changes: dict[str, Any]) -> dict[str, Any]:
        self._check_dates(existing, changes)
        return changes


class EducationService(ResourceService[Education]):
    label = "Education"
    required = ("degree", "school", "start_date", "current")

    @property
    def repo(self) -> TableRepository[Education]:
        return self.store.educations

    def order_by(self) -> Sequence[ColumnElement]:
        return (self.table.c.start_date.desc(),)

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        self._check_dates(None, values)
        return values

    def prepare_update(self, existing: Education, changes: dict[str, Any]) -> dict[str, Any]:
        self._check_dates(existing, changes)
        return changes


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


class ContactService(ResourceService[Contact]):
    """Public submissions managed by admins. Contacts have no owner."""

    label = "Contact"
    owned = False

    def __init__(self, store: ContentStore, mailer: Mailer) -> None:
        super().__init__(store)
        self.mailer = mailer

    @property
    def repo(self) -> TableRepository[Contact]:
        return self.store.contacts

    def submit(self, data: Mapping[str, Any], identity: Optional[Identity] = None) -> Contact:
        values = dict(data)
        values["user_id"] = identity.id if identity else None
        contact = self.repo.insert(values)
        logger.info("Contact message %d received", contact.id)
        return contact

    def list_messages(self, page: PageRequest, status: Optional[str] = None) -> Page[Contact]:
        wanted = coerce_enum(status, ContactStatus)
        where = self.table.c.status == wanted.value if wanted else None
        return self.list_page(page, where)

    def mark_read(self, row_id: int) -> Contact:
        contact = self.get(row_id)
        changes: dict[str, Any] = {"read": True}
        if contact.status == ContactStatus.NEW.value:
            changes["status"] = ContactStatus.READ.value
        return self.repo.update(row_id, changes) or contact

    def reply(self, row_id: int, text: Optional[str]) -> Contact:
        """Email ``text`` to the sender, then record it on the message."""
        if not text or not text.strip():
            raise ValidationError("Reply text is required.")
        contact = self.get(row_id)
        subject = f"Re: {contact.subject}" if contact.subject else "Re: your message"
        self.mailer.send(contact.email, subject, text)
        updated = self.repo.update(
            row_id,
            {
                "reply": text,
                "replied_at": now_iso(),
                "read": True,
                "status": ContactStatus.REPLIED.value,
            },
        )
        if updated is None:
            raise self._not_found()
        return updated


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@dataclass
class ContentServices:
    categories: CategoryService
    projects: ProjectService
    posts: BlogService
    skills: SkillService
    experiences: ExperienceService
    educations: EducationService
    contacts: ContactService


def build_services(store: ContentStore, files: LocalFileStorage, mailer: Mailer) -> ContentServices:
    """Construct every content service around shared collaborators."""
    return ContentServices(
        categories=CategoryService(store),
        projects=ProjectService(store, files),
        posts=BlogService(store, files),
        skills=SkillService(store),
        experiences=ExperienceService(store),
        educations=EducationService(store),
        contacts=ContactService(store, mailer),
    )
