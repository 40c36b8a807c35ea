"""
api/routes/v1/educations.py -- Education endpoints.

Routes:
  GET    /educations        -- public list, most recent start date first
  GET    /educations/{id}   -- public detail
  POST   /educations        -- create (requires auth)
  PUT    /educations/{id}   -- partial update (owner or admin)
  DELETE /educations/{id}   -- delete (owner or admin); 204
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import EducationCreate, EducationResponse, EducationUpdate, Envelope, PageResponse
from auth.dependencies import get_current_user
from auth.models import Identity
from content.services import EducationService

router = APIRouter()


def _educations(request: Request) -> EducationService:
    return request.app.state.content.educations


@router.get("/educations", response_model=Envelope[PageResponse[EducationResponse]])
def list_educations(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> Envelope[PageResponse[EducationResponse]]:
    service = _educations(request)
    result = service.list_page(service.page_request(page, limit))
    return Envelope[PageResponse[EducationResponse]](
        data=PageResponse[EducationResponse].from_page(result, EducationResponse)
    )


@router.get("/educations/{education_id}", response_model=Envelope[EducationResponse])
def get_education(request: Request, education_id: int) -> Envelope[EducationResponse]:
    education = _educations(request).get(education_id)
    return Envelope[EducationResponse](data=EducationResponse.model_validate(education))


@router.post("/educations", response_model=Envelope[EducationResponse], status_code=201)
def create_education(
    request: Request,
    body: EducationCreate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[EducationResponse]:
    education = _educations(request).create(identity, body.model_dump(mode="json"))
    return Envelope[EducationResponse](data=EducationResponse.model_validate(education), message="Education created.")


@router.put("/educations/{education_id}", response_model=Envelope[EducationResponse])
def update_education(
    request: Request,
    education_id: int,
    body: EducationUpdate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[EducationResponse]:
    changes = body.model_dump(mode="json", exclude_unset=True)
    education = _educations(request).update(education_id, identity, changes)
    return Envelope[EducationResponse](data=EducationResponse.model_validate(education), message="Education updated.")


@router.delete("/educations/{education_id}", status_code=204)
def delete_education(request: Request, education_id: int, identity: Identity = Depends(get_current_user)) -> Response:
    _educations(request).delete(education_id, identity)
    return Response(status_code=204)
