"""
tests/test_blog_routes.py -- Integration tests for /api/v1/blog.

Coverage:
  - reading_time derived from content on create and update
  - Publish endpoint: stamps published_at, second publish is 400
  - published_at set when created PUBLISHED, kept on later updates
  - Public list filters by tag and hides drafts
  - Replacing the image deletes the previous file from disk
"""

from __future__ import annotations

import json

from conftest import PNG_BYTES, bearer
from fastapi.testclient import TestClient


def _create(client: TestClient, token: str, **fields) -> dict:
    body = {"title": "A Post", "content": "Hello world", **fields}
    resp = client.post("/api/v1/blog", headers=bearer(token), json=body)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()["data"]


class TestReadingTime:
    """reading_time is ceil(words / 200), at least 1."""

    def test_reading_time_on_create_and_update(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        post = _create(client, token, title="Long Read", content=" ".join(["word"] * 401))
        assert post["reading_time"] == 3

        resp = client.put(f"/api/v1/blog/{post['id']}", headers=bearer(token), json={"content": "short"})
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        assert resp.json()["data"]["reading_time"] == 1

    def test_content_is_required(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.post("/api/v1/blog", headers=bearer(token), json={"title": "Empty"})
        assert resp.status_code == 400, f"Expected 400, got {resp.status_code}: {resp.text}"
        assert resp.json()["error"]["message"] == "Missing required fields: content"


class TestPublish:
    """PUT /api/v1/blog/{id}/publish"""

    def test_publish_draft(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        post = _create(client, token, title="Soon Public")
        assert post["published_at"] is None
        assert client.get("/api/v1/blog/soon-public").status_code == 404

        resp = client.put(f"/api/v1/blog/{post['id']}/publish", headers=bearer(token))
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        published = resp.json()["data"]
        assert published["status"] == "PUBLISHED"
        assert published["published_at"]

        assert client.get("/api/v1/blog/soon-public").status_code == 200

        again = client.put(f"/api/v1/blog/{post['id']}/publish", headers=bearer(token))
        assert again.status_code == 400, f"Expected 400, got {again.status_code}: {again.text}"

    def test_publish_by_non_owner_is_404(self, api_client, user_factory) -> None:
        client, token, _ = api_client
        other_token, _ = user_factory()
        post = _create(client, token, title="Admin Draft")
        resp = client.put(f"/api/v1/blog/{post['id']}/publish", headers=bearer(other_token))
        assert resp.status_code == 404, f"Expected 404, got {resp.status_code}: {resp.text}"

    def test_published_at_kept_across_updates(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        post = _create(client, token, title="Already Out", status="PUBLISHED")
        stamped = post["published_at"]
        assert stamped

        url = f"/api/v1/blog/{post['id']}"
        client.put(url, headers=bearer(token), json={"status": "ARCHIVED"})
        resp = client.put(url, headers=bearer(token), json={"status": "PUBLISHED"})
        assert resp.json()["data"]["published_at"] == stamped


class TestBlogListing:
    """Public list filtering."""

    def test_tag_filter(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        _create(client, token, title="Tagged Python", status="PUBLISHED", tags=["python", "fastapi"])
        _create(client, token, title="Tagged Go", status="PUBLISHED", tags=["go"])
        _create(client, token, title="Draft Python", tags=["python"])

        data = client.get("/api/v1/blog?tag=python").json()["data"]
        slugs = [p["slug"] for p in data["items"]]
        assert slugs == ["tagged-python"]
        assert data["pagination"]["total"] == 1

        # "py" is not the "python" tag.
        assert client.get("/api/v1/blog?tag=py").json()["data"]["items"] == []

    def test_non_ascii_tag_filter(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        post = _create(client, token, title="Morning Coffee", status="PUBLISHED", tags=["café", "naïve \"quoted\""])
        assert post["tags"] == ["café", "naïve \"quoted\""]

        data = client.get("/api/v1/blog", params={"tag": "café"}).json()["data"]
        assert [p["slug"] for p in data["items"]] == ["morning-coffee"]
        assert data["pagination"]["total"] == 1

        quoted = client.get("/api/v1/blog", params={"tag": "naïve \"quoted\""}).json()["data"]
        assert quoted["pagination"]["total"] == 1
        assert client.get("/api/v1/blog", params={"tag": "cafe"}).json()["data"]["pagination"]["total"] == 0

    def test_owner_view_filters_by_status(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        drafts = client.get("/api/v1/blog/admin?status=DRAFT", headers=bearer(token)).json()["data"]
        assert drafts["items"]
        assert all(p["status"] == "DRAFT" for p in drafts["items"])


class TestBlogImages:
    """Image replacement on update."""

    def test_replacing_image_deletes_old_file(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        files = client.app.state.files
        created = client.post(
            "/api/v1/blog",
            headers=bearer(token),
            data={"data": json.dumps({"title": "Pictured", "content": "Words here"})},
            files={"image": ("one.png", PNG_BYTES, "image/png")},
        )
        assert created.status_code == 201, f"Expected 201, got {created.status_code}: {created.text}"
        post = created.json()["data"]
        old_path = files.path_for(post["image"])
        assert old_path.exists()

        updated = client.put(
            f"/api/v1/blog/{post['id']}",
            headers=bearer(token),
            data={"data": json.dumps({"excerpt": "Now with a new picture"})},
            files={"image": ("two.webp", PNG_BYTES, "image/webp")},
        )
        assert updated.status_code == 200, f"Expected 200, got {updated.status_code}: {updated.text}"
        data = updated.json()["data"]
        assert data["excerpt"] == "Now with a new picture"
        assert data["image"].endswith("-two.webp")
        assert files.path_for(data["image"]).exists()
        assert not old_path.exists()

    def test_failed_update_keeps_old_file(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        files = client.app.state.files
        post = client.post(
            "/api/v1/blog",
            headers=bearer(token),
            data={"data": json.dumps({"title": "Keep Me", "content": "Words"})},
            files={"image": ("keep.png", PNG_BYTES, "image/png")},
        ).json()["data"]
        _create(client, token, title="Taken Slug")

        resp = client.put(
            f"/api/v1/blog/{post['id']}",
            headers=bearer(token),
            data={"data": json.dumps({"slug": "taken-slug"})},
            files={"image": ("new.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 409, f"Expected 409, got {resp.status_code}: {resp.text}"
        assert files.path_for(post["image"]).exists()
