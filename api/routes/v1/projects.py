"""
api/routes/v1/projects.py -- Portfolio project endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /projects          -- public list: PUBLISHED only, ?category=&featured=
  GET    /projects/admin    -- the caller's own projects, any status (?status=)
  GET    /projects/{slug}   -- public detail; unpublished projects are 404
  POST   /projects          -- create (requires auth); JSON or multipart + image
  PUT    /projects/{id}     -- partial update (owner or admin)
  DELETE /projects/{id}     -- delete (owner or admin); 204

/projects/admin must be registered before /projects/{slug} or the literal
"admin" would be captured as a slug.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from api.models import Envelope, PageResponse, ProjectCreate, ProjectResponse, ProjectUpdate
from api.uploads import read_payload
from auth.dependencies import get_current_user
from auth.models import Identity
from content.services import ProjectService

router = APIRouter()


def _projects(request: Request) -> ProjectService:
    return request.app.state.content.projects


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@router.get("/projects", response_model=Envelope[PageResponse[ProjectResponse]])
def list_projects(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    featured: Optional[str] = None,
) -> Envelope[PageResponse[ProjectResponse]]:
    """Published projects, featured first, then by priority and recency."""
    service = _projects(request)
    result = service.list_public(service.page_request(page, limit), category=category, featured=_truthy(featured))
    return Envelope[PageResponse[ProjectResponse]](data=PageResponse[ProjectResponse].from_page(result, ProjectResponse))


@router.get("/projects/admin", response_model=Envelope[PageResponse[ProjectResponse]])
def list_my_projects(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status: Optional[str] = None,
    identity: Identity = Depends(get_current_user),
) -> Envelope[PageResponse[ProjectResponse]]:
    service = _projects(request)
    result = service.list_owned(identity, service.page_request(page, limit), status)
    return Envelope[PageResponse[ProjectResponse]](data=PageResponse[ProjectResponse].from_page(result, ProjectResponse))


@router.get("/projects/{slug}", response_model=Envelope[ProjectResponse])
def get_project(request: Request, slug: str) -> Envelope[ProjectResponse]:
    project = _projects(request).get_published(slug)
    return Envelope[ProjectResponse](data=ProjectResponse.model_validate(project))


@router.post("/projects", response_model=Envelope[ProjectResponse], status_code=201)
async def create_project(request: Request, identity: Identity = Depends(get_current_user)) -> Envelope[ProjectResponse]:
    body, upload = await read_payload(request, ProjectCreate)
    project = await run_in_threadpool(_projects(request).create, identity, body.model_dump(mode="json"), upload)
    return Envelope[ProjectResponse](data=ProjectResponse.model_validate(project), message="Project created.")


@router.put("/projects/{project_id}", response_model=Envelope[ProjectResponse])
async def update_project(
    request: Request,
    project_id: int,
    identity: Identity = Depends(get_current_user),
) -> Envelope[ProjectResponse]:
    body, upload = await read_payload(request, ProjectUpdate)
    changes = body.model_dump(mode="json", exclude_unset=True)
    project = await run_in_threadpool(_projects(request).update, project_id, identity, changes, upload)
    return Envelope[ProjectResponse](data=ProjectResponse.model_validate(project), message="Project updated.")


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(request: Request, project_id: int, identity: Identity = Depends(get_current_user)) -> Response:
    _projects(request).delete(project_id, identity)
    return Response(status_code=204)
