"""User Routes — aggregate views addressed to or sent by one user.

Invariants:
    - Served from the per-identity cached superset; query parameters only refine it
    - /invitations accepts ?email= to address an unregistered invitee instead of the user id
"""

from fastapi import APIRouter, Depends, Query

from invitations.api.dependencies import get_invitation_service, get_list_params
from invitations.api.routes.invitations import list_response
from invitations.schemas.invitation import InvitationListResponse, ListParams
from invitations.services.invitation_service import (
    InvitationService, invitations_from_user_query, user_invitations_query,
    user_requests_query,
)

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}/invitations", response_model=InvitationListResponse)
async def user_invitations(
    user_id: int,
    params: ListParams = Depends(get_list_params),
    email: str | None = Query(None),
    service: InvitationService = Depends(get_invitation_service),
):
    """Invitations sent to a user (or to an email address)."""
    query = params.apply_to(user_invitations_query())
    records = await service.get_user_invitations(user_id, query, invitee_email=email)
    return list_response(records)


@router.get("/{user_id}/requests", response_model=InvitationListResponse)
async def user_requests(
    user_id: int,
    params: ListParams = Depends(get_list_params),
    service: InvitationService = Depends(get_invitation_service),
):
    query = params.apply_to(user_requests_query())
    return list_response(await service.get_user_requests(user_id, query))


@router.get("/{sender_id}/sent-invitations", response_model=InvitationListResponse)
async def sent_invitations(
    sender_id: int,
    params: ListParams = Depends(get_list_params),
    service: InvitationService = Depends(get_invitation_service),
):
    query = params.apply_to(invitations_from_user_query())
    return list_response(await service.get_invitations_from_user(sender_id, query))
