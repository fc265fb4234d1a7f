"""Request Routes — create, list and accept membership requests.

Invariants:
    - Requests are always type=request with inviter_id=0 (forced by the service)
    - Accepting a request needs the requesting user_id in the key
"""

from fastapi import APIRouter, Depends, Query, status

from invitations.api.dependencies import get_invitation_service, get_list_params
from invitations.api.routes.invitations import list_response, raise_on_failure
from invitations.core.invitation_query import InvitationQuery
from invitations.schemas.invitation import (
    AcceptBody, AffectedResponse, CreatedResponse, InvitationListResponse,
    ListParams, RequestCreate,
)
from invitations.services.invitation_service import InvitationService

router = APIRouter(prefix="/api/v1/requests", tags=["requests"])


@router.post(
    "", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED,
)
async def create_request(
    body: RequestCreate,
    service: InvitationService = Depends(get_invitation_service),
):
    """Store a request; accepted at once when a sent invitation already matches."""
    request_id = raise_on_failure(await service.add_request(body.to_new_invitation()))
    return CreatedResponse(id=request_id)


@router.get("", response_model=InvitationListResponse)
async def list_requests(
    params: ListParams = Depends(get_list_params),
    user_id: list[int] | None = Query(None),
    service: InvitationService = Depends(get_invitation_service),
):
    query = params.apply_to(InvitationQuery(user_id=user_id))
    return list_response(await service.get_requests(query))


@router.post("/accept", response_model=AffectedResponse)
async def accept_request(
    body: AcceptBody,
    service: InvitationService = Depends(get_invitation_service),
):
    affected = raise_on_failure(await service.accept_request(body.to_key()))
    return AffectedResponse(affected=affected)
