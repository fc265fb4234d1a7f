"""Invitation Routes — create, send, accept, list and decline invitations.

Invariants:
    - Failed OperationResults are raised so the global handler renders the error envelope
    - A delete that matched no row is a 404, not a silent success
    - List filters arrive as query parameters and overlay the endpoint's defaults
"""

import logging
from fastapi import APIRouter, Depends, Query, status

from invitations.api.dependencies import get_invitation_service, get_list_params
from invitations.core.domain_types import InvitationType
from invitations.core.errors import InvitationNotFoundError, OperationResult
from invitations.core.invitation_query import InvitationQuery
from invitations.schemas.invitation import (
    AcceptBody, AffectedResponse, CreatedResponse, InvitationCreate,
    InvitationListResponse, InvitationResponse, ListParams,
)
from invitations.services.invitation_service import InvitationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/invitations", tags=["invitations"])


def raise_on_failure(result: OperationResult) -> int:
    """Unwrap a successful result; raise the carried error otherwise."""
    if not result:
        raise result.error
    return result.value


def list_response(records) -> InvitationListResponse:
    return InvitationListResponse(
        invitations=[InvitationResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.post(
    "", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    body: InvitationCreate,
    service: InvitationService = Depends(get_invitation_service),
):
    """Store an invitation (and send it when send_invite is set)."""
    invitation_id = raise_on_failure(
        await service.add_invitation(body.to_new_invitation()),
    )
    logger.info(
        "Invitation created",
        extra={"invitation_id": invitation_id, "inviter_id": body.inviter_id},
    )
    return CreatedResponse(id=invitation_id)


@router.get("", response_model=InvitationListResponse)
async def list_invitations(
    params: ListParams = Depends(get_list_params),
    user_id: list[int] | None = Query(None),
    invitee_email: list[str] | None = Query(None),
    service: InvitationService = Depends(get_invitation_service),
):
    query = params.apply_to(InvitationQuery(
        type=InvitationType.INVITE, user_id=user_id, invitee_email=invitee_email,
    ))
    return list_response(await service.get_invitations(query))


@router.post("/accept", response_model=AffectedResponse)
async def accept_invitation(
    body: AcceptBody,
    service: InvitationService = Depends(get_invitation_service),
):
    """Accept every pending invitation and request for the given key."""
    affected = raise_on_failure(await service.accept_invitation(body.to_key()))
    return AffectedResponse(affected=affected)


@router.get("/{invitation_id}", response_model=InvitationResponse)
async def get_invitation(
    invitation_id: int,
    service: InvitationService = Depends(get_invitation_service),
):
    record = await service.get_invitation_by_id(invitation_id)
    if record is None:
        raise InvitationNotFoundError(invitation_id)
    return InvitationResponse.from_record(record)


@router.post("/{invitation_id}/send", response_model=AffectedResponse)
async def send_invitation(
    invitation_id: int,
    service: InvitationService = Depends(get_invitation_service),
):
    affected = raise_on_failure(await service.send_invitation_by_id(invitation_id))
    return AffectedResponse(affected=affected)


@router.delete("/{invitation_id}", response_model=AffectedResponse)
async def delete_invitation(
    invitation_id: int,
    service: InvitationService = Depends(get_invitation_service),
):
    """Decline (delete) a single invitation or request, accepted or not."""
    affected = raise_on_failure(await service.delete_invitation_by_id(invitation_id))
    if not affected:
        raise InvitationNotFoundError(invitation_id)
    return AffectedResponse(affected=affected)


@router.get("/components/registered")
async def registered_components(
    service: InvitationService = Depends(get_invitation_service),
):
    return {"components": service.get_registered_components()}

