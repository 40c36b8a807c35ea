"""
api/routes/v1/categories.py -- Category endpoints.

Categories are shared across projects, posts and skills, so writes are
admin-only. Reads are public.

Routes:
  GET    /categories          -- list, ordered by name
  GET    /categories/{slug}   -- detail
  POST   /categories          -- create (admin)
  PUT    /categories/{id}     -- partial update (admin)
  DELETE /categories/{id}     -- delete (admin); referencing rows are detached
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import CategoryCreate, CategoryResponse, CategoryUpdate, Envelope, PageResponse
from auth.dependencies import require_admin
from auth.models import Identity
from content.services import CategoryService

router = APIRouter()


def _categories(request: Request) -> CategoryService:
    return request.app.state.content.categories


@router.get("/categories", response_model=Envelope[PageResponse[CategoryResponse]])
def list_categories(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> Envelope[PageResponse[CategoryResponse]]:
    service = _categories(request)
    result = service.list_page(service.page_request(page, limit))
    return Envelope[PageResponse[CategoryResponse]](
        data=PageResponse[CategoryResponse].from_page(result, CategoryResponse)
    )


@router.get("/categories/{slug}", response_model=Envelope[CategoryResponse])
def get_category(request: Request, slug: str) -> Envelope[CategoryResponse]:
    category = _categories(request).get_by_slug(slug)
    return Envelope[CategoryResponse](data=CategoryResponse.model_validate(category))


@router.post("/categories", response_model=Envelope[CategoryResponse], status_code=201)
def create_category(
    request: Request,
    body: CategoryCreate,
    identity: Identity = Depends(require_admin),
) -> Envelope[CategoryResponse]:
    category = _categories(request).create(identity, body.model_dump())
    return Envelope[CategoryResponse](data=CategoryResponse.model_validate(category), message="Category created.")


@router.put("/categories/{category_id}", response_model=Envelope[CategoryResponse])
def update_category(
    request: Request,
    category_id: int,
    body: CategoryUpdate,
    identity: Identity = Depends(require_admin),
) -> Envelope[CategoryResponse]:
    category = _categories(request).update(category_id, identity, body.model_dump(exclude_unset=True))
    return Envelope[CategoryResponse](data=CategoryResponse.model_validate(category), message="Category updated.")


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(request: Request, category_id: int, identity: Identity = Depends(require_admin)) -> Response:
    _categories(request).delete(category_id, identity)
    return Response(status_code=204)
