"""
api/routes/v1/contacts.py -- Contact form submission and inbox management.

Routes:
  POST   /contacts              -- public submission (CONTACT_RATE_LIMIT per IP)
  GET    /contacts              -- inbox, newest first, ?status= (admin)
  GET    /contacts/{id}         -- one message (admin)
  PUT    /contacts/{id}/read    -- mark read; NEW becomes READ (admin)
  POST   /contacts/{id}/reply   -- email a reply and record it (admin)
  DELETE /contacts/{id}         -- delete (admin); 204

A signed-in sender is linked to the message through user_id. Invalid or
expired credentials on the public form are ignored, not rejected.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import contact_limit, limiter
from api.models import ContactCreate, ContactReply, ContactResponse, Envelope, PageResponse
from auth.dependencies import require_admin, try_get_current_user
from auth.models import Identity
from content.services import ContactService

router = APIRouter()


def _contacts(request: Request) -> ContactService:
    return request.app.state.content.contacts


@router.post("/contacts", response_model=Envelope[ContactResponse], status_code=201)
@limiter.limit(contact_limit)
def submit_contact(
    request: Request,
    body: ContactCreate,
    identity: Optional[Identity] = Depends(try_get_current_user),
) -> Envelope[ContactResponse]:
    contact = _contacts(request).submit(body.model_dump(), identity)
    return Envelope[ContactResponse](data=ContactResponse.model_validate(contact), message="Message sent.")


@router.get("/contacts", response_model=Envelope[PageResponse[ContactResponse]])
def list_contacts(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status: Optional[str] = None,
    _: Identity = Depends(require_admin),
) -> Envelope[PageResponse[ContactResponse]]:
    service = _contacts(request)
    result = service.list_messages(service.page_request(page, limit), status)
    return Envelope[PageResponse[ContactResponse]](
        data=PageResponse[ContactResponse].from_page(result, ContactResponse)
    )


@router.get("/contacts/{contact_id}", response_model=Envelope[ContactResponse])
def get_contact(request: Request, contact_id: int, _: Identity = Depends(require_admin)) -> Envelope[ContactResponse]:
    return Envelope[ContactResponse](data=ContactResponse.model_validate(_contacts(request).get(contact_id)))


@router.put("/contacts/{contact_id}/read", response_model=Envelope[ContactResponse])
def mark_contact_read(
    request: Request,
    contact_id: int,
    _: Identity = Depends(require_admin),
) -> Envelope[ContactResponse]:
    contact = _contacts(request).mark_read(contact_id)
    return Envelope[ContactResponse](data=ContactResponse.model_validate(contact), message="Marked as read.")


@router.post("/contacts/{contact_id}/reply", response_model=Envelope[ContactResponse])
def reply_to_contact(
    request: Request,
    contact_id: int,
    body: ContactReply,
    _: Identity = Depends(require_admin),
) -> Envelope[ContactResponse]:
    """Send the reply by email, then store it. A delivery failure is a 502 and nothing is stored."""
    contact = _contacts(request).reply(contact_id, body.reply)
    return Envelope[ContactResponse](data=ContactResponse.model_validate(contact), message="Reply sent.")


@router.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(request: Request, contact_id: int, identity: Identity = Depends(require_admin)) -> Response:
    _contacts(request).delete(contact_id, identity)
    return Response(status_code=204)
