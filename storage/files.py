"""
storage/files.py -- Local file storage for uploaded images and PDFs.

Files land under <root>/<folder>/<uuid>-<safe name> and are addressed by the
public URL <base_url>/uploads/<folder>/<uuid>-<safe name>. api/main.py mounts
the root directory at /uploads so the URL resolves.

Two delete flavours:
  delete()  -- raises OSError on failure; returns False for URLs this storage
               does not own.
  discard() -- best-effort wrapper used after a database commit. Failures are
               logged as warnings, never raised, so a stale file can never
               roll back or fail a completed write.

Security:
  The client filename is reduced to a safe basename before use, and every
  URL-to-path resolution is checked to stay inside the storage root.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from core.errors import ValidationError

logger = logging.getLogger("portfolio.storage")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# category -> (allowed extensions, allowed MIME types)
_FILE_TYPES: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    "image": (
        frozenset({".jpeg", ".jpg", ".png", ".gif", ".webp"}),
        frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"}),
    ),
    "document": (
        frozenset({".pdf"}),
        frozenset({"application/pdf"}),
    ),
}


@dataclass(frozen=True)
class Upload:
    """An uploaded file, fully read into memory by the route layer."""

    filename: str
    content_type: str
    data: bytes


class LocalFileStorage:
    def __init__(
        self,
        root: str | Path,
        base_url: str,
        max_image_bytes: int = 10 * 1024 * 1024,
        max_document_bytes: int = 20 * 1024 * 1024,
    ) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = f"{base_url.rstrip('/')}/uploads/"
        self._max_bytes = {"image": max_image_bytes, "document": max_document_bytes}

    def save(self, upload: Upload, folder: str, category: str = "image") -> str:
        """Validate and write ``upload`` under ``folder``; return its public URL.

        Raises ValidationError for an empty file, a disallowed type, or a file
        over the category's size limit.
        """
        extensions, mime_types = _FILE_TYPES[category]
        name = _safe_name(upload.filename)
        suffix = Path(name).suffix.lower()
        if suffix not in extensions or upload.content_type.lower() not in mime_types:
            allowed = ", ".join(sorted(ext.lstrip(".") for ext in extensions))
            raise ValidationError(f"Unsupported file type. Allowed: {allowed}.")
        if not upload.data:
            raise ValidationError("Uploaded file is empty.")
        limit = self._max_bytes[category]
        if len(upload.data) > limit:
            raise ValidationError(f"File too large. Maximum size is {limit // (1024 * 1024)} MB.")

        relative = PurePosixPath(folder) / f"{uuid.uuid4().hex}-{name}"
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(upload.data)
        logger.info("Stored upload %s (%d bytes)", relative, len(upload.data))
        return self.url_prefix + str(relative)

    def path_for(self, url: str) -> Path | None:
        """Map a public URL back to its file path, or None if not ours."""
        if not url.startswith(self.url_prefix):
            return None
        candidate = (self.root / url[len(self.url_prefix):]).resolve()
        if self.root not in candidate.parents:
            return None
        return candidate

    def delete(self, url: str) -> bool:
        path = self.path_for(url)
        if path is None:
            return False
        path.unlink(missing_ok=True)
        return True

    def discard(self, url: str | None) -> None:
        """Best-effort delete. Never raises."""
        if not url:
            return
        try:
            if not self.delete(url):
                logger.warning("Not removing %s: outside upload storage", url)
        except OSError as exc:
            logger.warning("Could not remove stored file %s: %s", url, exc)


def _safe_name(filename: str) -> str:
    base = PurePosixPath(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("-", base).strip("-.")
    return cleaned or "file"
