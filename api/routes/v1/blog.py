"""
api/routes/v1/blog.py -- Blog post endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /blog                -- public list: PUBLISHED only, ?category=&tag=
  GET    /blog/admin          -- the caller's own posts, any status (?status=)
  GET    /blog/{slug}         -- public detail; unpublished posts are 404
  POST   /blog                -- create (requires auth); JSON or multipart + image
  PUT    /blog/{id}           -- partial update (owner or admin)
  PUT    /blog/{id}/publish   -- move a post to PUBLISHED (owner or admin)
  DELETE /blog/{id}           -- delete (owner or admin); 204
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from api.models import Envelope, PageResponse, PostCreate, PostResponse, PostUpdate
from api.uploads import read_payload
from auth.dependencies import get_current_user
from auth.models import Identity
from content.services import BlogService

router = APIRouter()


def _posts(request: Request) -> BlogService:
    return request.app.state.content.posts


@router.get("/blog", response_model=Envelope[PageResponse[PostResponse]])
def list_posts(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
) -> Envelope[PageResponse[PostResponse]]:
    service = _posts(request)
    result = service.list_public(service.page_request(page, limit), category=category, tag=tag)
    return Envelope[PageResponse[PostResponse]](data=PageResponse[PostResponse].from_page(result, PostResponse))


@router.get("/blog/admin", response_model=Envelope[PageResponse[PostResponse]])
def list_my_posts(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status: Optional[str] = None,
    identity: Identity = Depends(get_current_user),
) -> Envelope[PageResponse[PostResponse]]:
    service = _posts(request)
    result = service.list_owned(identity, service.page_request(page, limit), status)
    return Envelope[PageResponse[PostResponse]](data=PageResponse[PostResponse].from_page(result, PostResponse))


@router.get("/blog/{slug}", response_model=Envelope[PostResponse])
def get_post(request: Request, slug: str) -> Envelope[PostResponse]:
    post = _posts(request).get_published(slug)
    return Envelope[PostResponse](data=PostResponse.model_validate(post))


@router.post("/blog", response_model=Envelope[PostResponse], status_code=201)
async def create_post(request: Request, identity: Identity = Depends(get_current_user)) -> Envelope[PostResponse]:
    body, upload = await read_payload(request, PostCreate)
    post = await run_in_threadpool(_posts(request).create, identity, body.model_dump(mode="json"), upload)
    return Envelope[PostResponse](data=PostResponse.model_validate(post), message="Post created.")


@router.put("/blog/{post_id}", response_model=Envelope[PostResponse])
async def update_post(request: Request, post_id: int, identity: Identity = Depends(get_current_user)) -> Envelope[PostResponse]:
    body, upload = await read_payload(request, PostUpdate)
    changes = body.model_dump(mode="json", exclude_unset=True)
    post = await run_in_threadpool(_posts(request).update, post_id, identity, changes, upload)
    return Envelope[PostResponse](data=PostResponse.model_validate(post), message="Post updated.")


@router.put("/blog/{post_id}/publish", response_model=Envelope[PostResponse])
def publish_post(request: Request, post_id: int, identity: Identity = Depends(get_current_user)) -> Envelope[PostResponse]:
    """Publish a draft or archived post. Publishing twice is a 400."""
    post = _posts(request).publish(post_id, identity)
    return Envelope[PostResponse](data=PostResponse.model_validate(post), message="Post published.")


@router.delete("/blog/{post_id}", status_code=204)
def delete_post(request: Request, post_id: int, identity: Identity = Depends(get_current_user)) -> Response:
    _posts(request).delete(post_id, identity)
    return Response(status_code=204)
