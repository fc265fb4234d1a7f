"""API Dependencies — per-request InvitationService wiring.

Invariants:
    - The InvitationRuntime lives on app.state, built once in the lifespan
    - Each request gets its own DB session and a fresh service around it
    - List filters are parsed here once; an invalid filter is a 400 validation error
"""

from fastapi import Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter, SortOrder,
)
from invitations.infrastructure.database import get_db
from invitations.schemas.invitation import ListParams
from invitations.services.invitation_service import InvitationService
from invitations.services.runtime import InvitationRuntime


def get_runtime(request: Request) -> InvitationRuntime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise RuntimeError("Invitation runtime not initialized")
    return runtime


async def get_invitation_service(
    runtime: InvitationRuntime = Depends(get_runtime),
    db: AsyncSession = Depends(get_db),
) -> InvitationService:
    return runtime.service_for(db)


def get_list_params(
    component_name: list[str] | None = Query(None),
    component_action: list[str] | None = Query(None),
    item_id: list[int] | None = Query(None),
    secondary_item_id: list[int] | None = Query(None),
    inviter_id: list[int] | None = Query(None),
    invite_sent: SentFilter | None = None,
    accepted: AcceptedFilter | None = None,
    type: InvitationType | None = None,
    search_terms: str | None = None,
    order_by: str | None = None,
    sort_order: SortOrder | None = None,
    page: int | None = Query(None, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
) -> ListParams:
    """Collect list filters from the query string."""
    try:
        return ListParams(
            component_name=component_name,
            component_action=component_action,
            item_id=item_id,
            secondary_item_id=secondary_item_id,
            inviter_id=inviter_id,
            invite_sent=invite_sent,
            accepted=accepted,
            type=type,
            search_terms=search_terms,
            order_by=order_by,
            sort_order=sort_order,
            page=page,
            per_page=per_page,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())
