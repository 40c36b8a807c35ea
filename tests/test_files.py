"""
tests/test_files.py -- Unit tests for storage/files.py.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import ValidationError
from storage.files import LocalFileStorage, Upload

BASE_URL = "http://cdn.local"


@pytest.fixture
def storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads", BASE_URL, max_image_bytes=100, max_document_bytes=200)


class TestSave:
    def test_saves_under_folder_with_public_url(self, storage: LocalFileStorage) -> None:
        url = storage.save(Upload("My Photo.PNG", "image/png", b"png-bytes"), "projects")
        assert url.startswith(f"{BASE_URL}/uploads/projects/")
        assert url.endswith("-My-Photo.PNG")
        path = storage.path_for(url)
        assert path.read_bytes() == b"png-bytes"

    def test_path_components_stripped_from_filename(self, storage: LocalFileStorage) -> None:
        url = storage.save(Upload("../../etc/passwd.png", "image/png", b"x"), "blog")
        path = storage.path_for(url)
        assert path.parent == storage.root / "blog"
        assert path.name.endswith("-passwd.png")

    @pytest.mark.parametrize(
        "upload",
        [
            Upload("script.js", "image/png", b"x"),
            Upload("photo.png", "text/html", b"x"),
            Upload("photo.png", "image/png", b""),
            Upload("photo.png", "image/png", b"x" * 101),
        ],
    )
    def test_rejects_bad_uploads(self, storage: LocalFileStorage, upload: Upload) -> None:
        with pytest.raises(ValidationError):
            storage.save(upload, "projects")

    def test_documents_have_their_own_limit(self, storage: LocalFileStorage) -> None:
        url = storage.save(Upload("cv.pdf", "application/pdf", b"x" * 150), "resumes", "document")
        assert url.endswith("-cv.pdf")
        with pytest.raises(ValidationError):
            storage.save(Upload("cv.png", "image/png", b"x"), "resumes", "document")


class TestDelete:
    def test_delete_and_discard(self, storage: LocalFileStorage) -> None:
        url = storage.save(Upload("a.gif", "image/gif", b"gif"), "avatars")
        path = storage.path_for(url)
        assert storage.delete(url) is True
        assert not path.exists()
        # Missing files and foreign URLs are not errors for discard().
        storage.discard(url)
        storage.discard("https://elsewhere.example/image.png")
        storage.discard(None)

    def test_foreign_and_escaping_urls_not_resolved(self, storage: LocalFileStorage) -> None:
        assert storage.path_for("https://elsewhere.example/uploads/a.png") is None
        assert storage.path_for(f"{BASE_URL}/uploads/../../secret.txt") is None
        assert storage.delete("https://elsewhere.example/uploads/a.png") is False
