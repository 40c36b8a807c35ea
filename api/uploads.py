"""
api/uploads.py -- Request body parsing for endpoints that accept a file.

Project and blog create/update accept either a JSON body or
multipart/form-data. In the multipart form the entity fields travel as one
JSON-encoded ``data`` part (or as plain form fields) next to the file part:

    curl -F 'data={"title": "Hello"}' -F image=@cover.png .../api/v1/blog

Schema failures are re-raised as FastAPI's RequestValidationError so they go
through the same 400 handler as ordinary body validation.
"""

from __future__ import annotations

import json
from typing import Any, Optional, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from starlette.datastructures import UploadFile

from core.config import get_settings
from core.errors import ValidationError
from storage.files import Upload

M = TypeVar("M", bound=BaseModel)


async def to_upload(file: UploadFile) -> Upload:
    """Read an UploadFile into memory, one byte past the largest allowed size.

    LocalFileStorage.save() enforces the real per-category limit; the cap here
    only bounds how much a client can make us buffer.
    """
    settings = get_settings()
    cap = max(settings.max_image_bytes, settings.max_document_bytes) + 1
    data = await file.read(cap)
    await file.close()
    return Upload(
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )


def _form_fields(form: Any) -> dict[str, Any]:
    raw = form.get("data")
    if raw is None:
        return {k: v for k, v in form.multi_items() if not isinstance(v, UploadFile)}
    if isinstance(raw, UploadFile):
        raise ValidationError("Form part 'data' must be a JSON string.")
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Form part 'data' must be valid JSON.") from exc


async def read_payload(request: Request, schema: type[M], file_field: str = "image") -> tuple[M, Optional[Upload]]:
    """Parse the body of ``request`` into ``schema`` plus an optional upload."""
    upload = None
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        data = _form_fields(form)
        file = form.get(file_field)
        if isinstance(file, UploadFile) and file.filename:
            upload = await to_upload(file)
    else:
        try:
            data = await request.json()
        except ValueError as exc:
            raise ValidationError("Request body must be valid JSON.") from exc

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return schema.model_validate(data), upload
    except SchemaError as exc:
        raise RequestValidationError(exc.errors()) from exc
