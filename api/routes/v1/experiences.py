"""
api/routes/v1/experiences.py -- Work experience endpoints.

Routes:
  GET    /experiences        -- public list, most recent start date first
  GET    /experiences/{id}   -- public detail
  POST   /experiences        -- create (requires auth)
  PUT    /experiences/{id}   -- partial update (owner or admin)
  DELETE /experiences/{id}   -- delete (owner or admin); 204

end_date may not precede start_date, and an end_date needs a start_date.
The check runs against the merged record on update, so sending only an
end_date is validated against the stored start_date.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import Envelope, ExperienceCreate, ExperienceResponse, ExperienceUpdate, PageResponse
from auth.dependencies import get_current_user
from auth.models import Identity
from content.services import ExperienceService

router = APIRouter()


def _experiences(request: Request) -> ExperienceService:
    return request.app.state.content.experiences


@router.get("/experiences", response_model=Envelope[PageResponse[ExperienceResponse]])
def list_experiences(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> Envelope[PageResponse[ExperienceResponse]]:
    service = _experiences(request)
    result = service.list_page(service.page_request(page, limit))
    return Envelope[PageResponse[ExperienceResponse]](
        data=PageResponse[ExperienceResponse].from_page(result, ExperienceResponse)
    )


@router.get("/experiences/{experience_id}", response_model=Envelope[ExperienceResponse])
def get_experience(request: Request, experience_id: int) -> Envelope[ExperienceResponse]:
    experience = _experiences(request).get(experience_id)
    return Envelope[ExperienceResponse](data=ExperienceResponse.model_validate(experience))


@router.post("/experiences", response_model=Envelope[ExperienceResponse], status_code=201)
def create_experience(
    request: Request,
    body: ExperienceCreate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[ExperienceResponse]:
    experience = _experiences(request).create(identity, body.model_dump(mode="json"))
    return Envelope[ExperienceResponse](
        data=ExperienceResponse.model_validate(experience), message="Experience created."
    )


@router.put("/experiences/{experience_id}", response_model=Envelope[ExperienceResponse])
def update_experience(
    request: Request,
    experience_id: int,
    body: ExperienceUpdate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[ExperienceResponse]:
    changes = body.model_dump(mode="json", exclude_unset=True)
    experience = _experiences(request).update(experience_id, identity, changes)
    return Envelope[ExperienceResponse](
        data=ExperienceResponse.model_validate(experience), message="Experience updated."
    )


@router.delete("/experiences/{experience_id}", status_code=204)
def delete_experience(request: Request, experience_id: int, identity: Identity = Depends(get_current_user)) -> Response:
    _experiences(request).delete(experience_id, identity)
    return Response(status_code=204)
