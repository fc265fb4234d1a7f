"""Invitation ORM — one table for both invitations and requests.

Invariants:
    - type is "invite" or "request"; inviter_id is 0 for requests
    - Every column is NOT NULL with a neutral default (0, "", false) so the
      key columns compare as real values in the unique index
    - At most one PENDING row per (user_id, invitee_email, inviter_id,
      component_name, component_action, item_id, secondary_item_id, type):
      enforced by a partial unique index, accepted rows are excluded

Design Decisions:
    - Partial index over a plain UniqueConstraint: accepted rows stay as history
      and must not block a later invitation to the same target
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from invitations.db.base import Base


class Invitation(Base):
    """Invitation or request row."""
    __tablename__ = "invitations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, index=True,
    )
    inviter_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, index=True,
    )
    invitee_email: Mapped[str] = mapped_column(
        String(100), nullable=False, default="", index=True,
    )
    component_name: Mapped[str] = mapped_column(String(75), nullable=False, default="")
    component_action: Mapped[str] = mapped_column(String(75), nullable=False, default="")
    item_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    secondary_item_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="invite")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    invite_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


Index(
    "uq_invitations_pending_key",
    Invitation.user_id,
    Invitation.invitee_email,
    Invitation.inviter_id,
    Invitation.component_name,
    Invitation.component_action,
    Invitation.item_id,
    Invitation.secondary_item_id,
    Invitation.type,
    unique=True,
    postgresql_where=Invitation.accepted == false(),
    sqlite_where=Invitation.accepted == false(),
)

Index(
    "ix_invitations_component_item",
    Invitation.component_name,
    Invitation.component_action,
    Invitation.item_id,
)
