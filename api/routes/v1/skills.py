"""
api/routes/v1/skills.py -- Skill endpoints.

Routes:
  GET    /skills        -- public list, most experienced first (?category=)
  GET    /skills/{id}   -- public detail
  POST   /skills        -- create (requires auth); names are unique, case-insensitive
  PUT    /skills/{id}   -- partial update (owner or admin)
  DELETE /skills/{id}   -- delete (owner or admin); 204
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import Envelope, PageResponse, SkillCreate, SkillResponse, SkillUpdate
from auth.dependencies import get_current_user
from auth.models import Identity
from content.services import SkillService

router = APIRouter()


def _skills(request: Request) -> SkillService:
    return request.app.state.content.skills


@router.get("/skills", response_model=Envelope[PageResponse[SkillResponse]])
def list_skills(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
) -> Envelope[PageResponse[SkillResponse]]:
    service = _skills(request)
    result = service.list_public(service.page_request(page, limit), category=category)
    return Envelope[PageResponse[SkillResponse]](data=PageResponse[SkillResponse].from_page(result, SkillResponse))


@router.get("/skills/{skill_id}", response_model=Envelope[SkillResponse])
def get_skill(request: Request, skill_id: int) -> Envelope[SkillResponse]:
    return Envelope[SkillResponse](data=SkillResponse.model_validate(_skills(request).get(skill_id)))


@router.post("/skills", response_model=Envelope[SkillResponse], status_code=201)
def create_skill(
    request: Request,
    body: SkillCreate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[SkillResponse]:
    skill = _skills(request).create(identity, body.model_dump(mode="json"))
    return Envelope[SkillResponse](data=SkillResponse.model_validate(skill), message="Skill created.")


@router.put("/skills/{skill_id}", response_model=Envelope[SkillResponse])
def update_skill(
    request: Request,
    skill_id: int,
    body: SkillUpdate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[SkillResponse]:
    skill = _skills(request).update(skill_id, identity, body.model_dump(mode="json", exclude_unset=True))
    return Envelope[SkillResponse](data=SkillResponse.model_validate(skill), message="Skill updated.")


@router.delete("/skills/{skill_id}", status_code=204)
def delete_skill(request: Request, skill_id: int, identity: Identity = Depends(get_current_user)) -> Response:
    _skills(request).delete(skill_id, identity)
    return Response(status_code=204)
