"""
tests/test_content_store.py -- Unit tests for content/store.py and content/repository.py.

Each test gets its own named shared-memory database, so no state leaks
between tests.
"""

from __future__ import annotations

import uuid

import pytest

from content.models import Category, Project
from content.store import ContentStore
from core.pagination import PageRequest


@pytest.fixture
def store():
    s = ContentStore(f"sqlite:///file:content_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


def _project(store: ContentStore, slug: str, **extra) -> Project:
    return store.projects.insert({"title": slug.title(), "slug": slug, "user_id": 1, **extra})


class TestTableRepository:
    def test_insert_stamps_timestamps_and_maps_dataclass(self, store: ContentStore) -> None:
        project = _project(store, "site", technologies=["python", "fastapi"])
        assert isinstance(project, Project)
        assert project.id is not None
        assert project.created_at and project.created_at == project.updated_at
        assert project.technologies == ["python", "fastapi"]
        assert project.status == "DRAFT"

    def test_update_missing_row_returns_none(self, store: ContentStore) -> None:
        assert store.projects.update(999, {"title": "Nope"}) is None

    def test_update_changes_only_given_columns(self, store: ContentStore) -> None:
        project = _project(store, "alpha", description="keep me")
        updated = store.projects.update(project.id, {"title": "Renamed"})
        assert updated.title == "Renamed"
        assert updated.description == "keep me"

    def test_unknown_column_rejected(self, store: ContentStore) -> None:
        with pytest.raises(ValueError, match="Unknown projects columns"):
            store.projects.insert({"title": "x", "slug": "x", "user_id": 1, "bogus": True})

    def test_delete(self, store: ContentStore) -> None:
        project = _project(store, "doomed")
        assert store.projects.delete(project.id) is True
        assert store.projects.delete(project.id) is False
        assert store.projects.get(project.id) is None

    def test_total_matches_filter(self, store: ContentStore) -> None:
        """The count query uses the same predicate as the list query."""
        for i in range(7):
            _project(store, f"p{i}", status="PUBLISHED" if i % 2 == 0 else "DRAFT")
        published = store.projects.table.c.status == "PUBLISHED"

        page = store.projects.list_page(PageRequest(page=1, limit=3), where=published)
        assert page.total == 4
        assert page.pages == 2
        assert len(page.items) == 3
        assert all(p.status == "PUBLISHED" for p in page.items)

        last = store.projects.list_page(PageRequest(page=2, limit=3), where=published)
        assert len(last.items) == 1
        assert {p.slug for p in page.items + last.items} == {"p0", "p2", "p4", "p6"}

    def test_page_beyond_end_is_empty(self, store: ContentStore) -> None:
        _project(store, "only")
        page = store.projects.list_page(PageRequest(page=5, limit=10))
        assert page.items == []
        assert page.total == 1


class TestCategories:
    def test_in_category_predicate(self, store: ContentStore) -> None:
        web = store.categories.insert({"name": "Web", "slug": "web"})
        _project(store, "in-web", category_id=web.id)
        _project(store, "loose")

        page = store.projects.list_page(PageRequest(), where=store.in_category(store.projects.table, "web"))
        assert [p.slug for p in page.items] == ["in-web"]

        missing = store.projects.list_page(PageRequest(), where=store.in_category(store.projects.table, "nope"))
        assert missing.total == 0

    def test_delete_category_detaches_dependents(self, store: ContentStore) -> None:
        cat = store.categories.insert({"name": "Tools", "slug": "tools"})
        assert isinstance(cat, Category)
        project = _project(store, "tool", category_id=cat.id)
        skill = store.skills.insert({"name": "Docker", "user_id": 1, "category_id": cat.id})

        assert store.delete_category(cat.id) is True
        assert store.categories.get(cat.id) is None
        assert store.projects.get(project.id).category_id is None
        assert store.skills.get(skill.id).category_id is None

    def test_delete_missing_category(self, store: ContentStore) -> None:
        assert store.delete_category(12345) is False

    def test_ping(self, store: ContentStore) -> None:
        assert store.ping() is True
