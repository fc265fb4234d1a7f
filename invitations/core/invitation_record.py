"""Invitation Record — the logical record shared by invitations and requests.

Invariants:
    - One record type; `type` is the discriminant (invite | request)
    - user_id == 0 means the invitee is addressed by invitee_email only
    - inviter_id == 0 for every request
    - InvitationKey is the (identity, component, action, item, secondary item)
      tuple used for duplicate detection and cross-type matching

Design Decisions:
    - Frozen dataclass: records leave the store as values; mutation goes through the store
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from invitations.core.domain_types import InvitationType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InvitationRecord:
    """One row of the invitations table, detached from the ORM."""
    id: int
    user_id: int = 0
    inviter_id: int = 0
    invitee_email: str = ""
    component_name: str = ""
    component_action: str = ""
    item_id: int = 0
    secondary_item_id: int = 0
    type: InvitationType = InvitationType.INVITE
    content: str = ""
    date_modified: datetime = field(default_factory=utcnow)
    invite_sent: bool = False
    accepted: bool = False

    @property
    def key(self) -> "InvitationKey":
        return InvitationKey(
            user_id=self.user_id,
            invitee_email=self.invitee_email,
            component_name=self.component_name,
            component_action=self.component_action,
            item_id=self.item_id,
            secondary_item_id=self.secondary_item_id,
        )


@dataclass(frozen=True)
class InvitationKey:
    """Invitee identity plus the target an invitation or request points at."""
    user_id: int = 0
    invitee_email: str = ""
    component_name: str = ""
    component_action: str = ""
    item_id: int = 0
    secondary_item_id: int = 0

    @property
    def has_identity(self) -> bool:
        return bool(self.user_id or self.invitee_email)


@dataclass(frozen=True)
class NewInvitation:
    """Fields for a record that does not exist yet (no id)."""
    user_id: int = 0
    inviter_id: int = 0
    invitee_email: str = ""
    component_name: str = ""
    component_action: str = ""
    item_id: int = 0
    secondary_item_id: int = 0
    type: InvitationType = InvitationType.INVITE
    content: str = ""
    date_modified: datetime = field(default_factory=utcnow)
    invite_sent: bool = False
    accepted: bool = False

    @property
    def key(self) -> InvitationKey:
        return InvitationKey(
            user_id=self.user_id,
            invitee_email=self.invitee_email,
            component_name=self.component_name,
            component_action=self.component_action,
            item_id=self.item_id,
            secondary_item_id=self.secondary_item_id,
        )
