"""Invitation Schemas — Pydantic models for the invitation and request endpoints.

Invariants:
    - InvitationCreate needs an invitee (user_id or invitee_email) and a non-zero inviter_id
    - RequestCreate needs a non-zero user_id and carries no inviter
    - AcceptBody carries a full key; key completeness is checked by the service
    - Bodies convert to core types (NewInvitation, InvitationKey) — routes never build them by hand
    - ListParams maps query-string parameters 1:1 onto InvitationQuery options
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter, SortOrder, SORTABLE_FIELDS,
)
from invitations.core.invitation_query import InvitationQuery
from invitations.core.invitation_record import (
    InvitationKey, InvitationRecord, NewInvitation,
)


class _TargetFields(BaseModel):
    """Component target shared by every body."""
    component_name: str = Field(min_length=1, max_length=75)
    component_action: str = Field(min_length=1, max_length=75)
    item_id: int = Field(ge=0)
    secondary_item_id: int = Field(0, ge=0)


class InvitationCreate(_TargetFields):
    """Invitation creation — invitee by user id or by email, never neither."""
    user_id: int = Field(0, ge=0)
    invitee_email: EmailStr | None = None
    inviter_id: int = Field(gt=0)
    content: str = Field("", max_length=10_000)
    send_invite: bool = False

    @model_validator(mode="after")
    def check_invitee(self) -> "InvitationCreate":
        if not self.user_id and not self.invitee_email:
            raise ValueError("either user_id or invitee_email is required")
        return self

    def to_new_invitation(self) -> NewInvitation:
        return NewInvitation(
            user_id=self.user_id,
            inviter_id=self.inviter_id,
            invitee_email="" if self.user_id else (self.invitee_email or ""),
            component_name=self.component_name,
            component_action=self.component_action,
            item_id=self.item_id,
            secondary_item_id=self.secondary_item_id,
            type=InvitationType.INVITE,
            content=self.content,
            invite_sent=self.send_invite,
        )


class RequestCreate(_TargetFields):
    """Request creation — always made by a registered user."""
    user_id: int = Field(gt=0)
    content: str = Field("", max_length=10_000)

    def to_new_invitation(self) -> NewInvitation:
        return NewInvitation(
            user_id=self.user_id,
            component_name=self.component_name,
            component_action=self.component_action,
            item_id=self.item_id,
            secondary_item_id=self.secondary_item_id,
            type=InvitationType.REQUEST,
            content=self.content,
        )


class AcceptBody(_TargetFields):
    """Key of the invitations/requests to accept."""
    user_id: int = Field(0, ge=0)
    invitee_email: EmailStr | None = None

    def to_key(self) -> InvitationKey:
        return InvitationKey(
            user_id=self.user_id,
            invitee_email="" if self.user_id else (self.invitee_email or ""),
            component_name=self.component_name,
            component_action=self.component_action,
            item_id=self.item_id,
            secondary_item_id=self.secondary_item_id,
        )


class ListParams(BaseModel):
    """Query-string filters for list endpoints."""
    component_name: list[str] | None = None
    component_action: list[str] | None = None
    item_id: list[int] | None = None
    secondary_item_id: list[int] | None = None
    inviter_id: list[int] | None = None
    invite_sent: SentFilter | None = None
    accepted: AcceptedFilter | None = None
    type: InvitationType | None = None
    search_terms: str | None = None
    order_by: str | None = None
    sort_order: SortOrder | None = None
    page: int | None = Field(None, ge=1)
    per_page: int | None = Field(None, ge=1, le=100)

    @field_validator("order_by")
    @classmethod
    def check_order_by(cls, v: str | None) -> str | None:
        if v is not None and v not in SORTABLE_FIELDS:
            raise ValueError(f"order_by must be one of {sorted(SORTABLE_FIELDS)}")
        return v

    def apply_to(self, base: InvitationQuery) -> InvitationQuery:
        """Overlay the parameters the caller actually sent onto `base`."""
        return base.with_overrides(**self.model_dump(exclude_none=True))


class InvitationResponse(BaseModel):
    """Public view of a stored invitation or request."""
    id: int
    user_id: int
    inviter_id: int
    invitee_email: str
    component_name: str
    component_action: str
    item_id: int
    secondary_item_id: int
    type: InvitationType
    content: str
    date_modified: datetime
    invite_sent: bool
    accepted: bool

    @classmethod
    def from_record(cls, record: InvitationRecord) -> "InvitationResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            inviter_id=record.inviter_id,
            invitee_email=record.invitee_email,
            component_name=record.component_name,
            component_action=record.component_action,
            item_id=record.item_id,
            secondary_item_id=record.secondary_item_id,
            type=record.type,
            content=record.content,
            date_modified=record.date_modified,
            invite_sent=record.invite_sent,
            accepted=record.accepted,
        )


class InvitationListResponse(BaseModel):
    invitations: list[InvitationResponse]
    total: int


class CreatedResponse(BaseModel):
    id: int


class AffectedResponse(BaseModel):
    """Row count of a bulk write. Zero is a valid, successful outcome."""
    affected: int
