"""Invitation Query — the filter DSL shared by the store and the in-memory read path.

Invariants:
    - Every recognized option is a declared field with its default; unknown options are rejected
    - Multi-value fields are normalized to tuples (OR-match); None or an empty set = no constraint
    - invite_sent / accepted are tri-state: ALL removes the predicate entirely
    - filter_invitations() applies filter -> sort -> paginate with the SAME semantics the
      store renders into SQL (see services/invitation_store.py)
    - Ties on order_by are broken by id, in the same direction as order_by
    - search_terms is a case-insensitive substring of component_name OR component_action

Design Decisions:
    - Pydantic model over an argument-bag merge: each call site constructs the options explicitly
    - Functions here are PURE: no IO, no async, no DB
"""

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter, SortOrder, SORTABLE_FIELDS,
)
from invitations.core.invitation_record import InvitationKey, InvitationRecord

INT_FIELDS = ("id", "user_id", "inviter_id", "item_id", "secondary_item_id")
STR_FIELDS = ("invitee_email", "component_name", "component_action")
MULTI_VALUE_FIELDS = INT_FIELDS + STR_FIELDS


class InvitationQuery(BaseModel):
    """Structured filter over invitation records."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: tuple[int, ...] | None = None
    user_id: tuple[int, ...] | None = None
    inviter_id: tuple[int, ...] | None = None
    invitee_email: tuple[str, ...] | None = None
    component_name: tuple[str, ...] | None = None
    component_action: tuple[str, ...] | None = None
    item_id: tuple[int, ...] | None = None
    secondary_item_id: tuple[int, ...] | None = None

    invite_sent: SentFilter = SentFilter.ALL
    accepted: AcceptedFilter = AcceptedFilter.PENDING
    search_terms: str | None = None
    type: InvitationType | None = None

    order_by: str = "id"
    sort_order: SortOrder = SortOrder.ASC
    page: int | None = Field(None, ge=1)
    per_page: int | None = Field(None, ge=1)

    @field_validator(*MULTI_VALUE_FIELDS, mode="before")
    @classmethod
    def normalize_values(cls, v: Any) -> Any:
        """Scalar -> 1-tuple, iterable -> de-duplicated tuple, empty -> None."""
        if v is None:
            return None
        if isinstance(v, (str, int)):
            return (v,)
        if isinstance(v, Iterable):
            values = tuple(dict.fromkeys(v))
            return values or None
        return v

    @field_validator("order_by")
    @classmethod
    def check_order_by(cls, v: str) -> str:
        if v not in SORTABLE_FIELDS:
            raise ValueError(f"order_by must be one of {sorted(SORTABLE_FIELDS)}")
        return v

    @field_validator("search_terms")
    @classmethod
    def strip_search_terms(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @property
    def is_paginated(self) -> bool:
        return self.per_page is not None

    def with_overrides(self, **changes: Any) -> "InvitationQuery":
        """Copy with some options replaced. Re-validates the result."""
        data = self.model_dump()
        data.update(changes)
        return InvitationQuery.model_validate(data)

    def without_paging(self) -> "InvitationQuery":
        return self.with_overrides(page=None, per_page=None)


def key_query(key: InvitationKey, **options: Any) -> InvitationQuery:
    """Query matching every record that shares `key`.

    Identity is the user id when set, otherwise the invitee email.
    """
    identity: dict[str, Any] = (
        {"user_id": key.user_id} if key.user_id
        else {"invitee_email": key.invitee_email}
    )
    return InvitationQuery(
        **identity,
        component_name=key.component_name,
        component_action=key.component_action,
        item_id=key.item_id,
        secondary_item_id=key.secondary_item_id,
        **options,
    )


# ─── In-memory evaluation ────────────────────────────────────────

def matches(record: InvitationRecord, query: InvitationQuery) -> bool:
    """True when `record` satisfies every predicate of `query`."""
    for name in MULTI_VALUE_FIELDS:
        allowed = getattr(query, name)
        if allowed is not None and getattr(record, name) not in allowed:
            return False

    if query.invite_sent == SentFilter.SENT and not record.invite_sent:
        return False
    if query.invite_sent == SentFilter.DRAFT and record.invite_sent:
        return False

    if query.accepted == AcceptedFilter.ACCEPTED and not record.accepted:
        return False
    if query.accepted == AcceptedFilter.PENDING and record.accepted:
        return False

    if query.type is not None and record.type != query.type:
        return False

    if query.search_terms:
        needle = query.search_terms.lower()
        if (
            needle not in record.component_name.lower()
            and needle not in record.component_action.lower()
        ):
            return False
    return True


def _sort_value(record: InvitationRecord, field_name: str) -> Any:
    value = getattr(record, field_name)
    if isinstance(value, InvitationType):
        return value.value
    return value


def sort_invitations(
    records: Iterable[InvitationRecord], query: InvitationQuery,
) -> list[InvitationRecord]:
    return sorted(
        records,
        key=lambda r: (_sort_value(r, query.order_by), r.id),
        reverse=query.sort_order == SortOrder.DESC,
    )


def paginate(
    records: list[InvitationRecord], query: InvitationQuery,
) -> list[InvitationRecord]:
    if not query.is_paginated:
        return records
    page = query.page or 1
    start = (page - 1) * query.per_page
    return records[start:start + query.per_page]


def filter_invitations(
    records: Iterable[InvitationRecord], query: InvitationQuery,
) -> list[InvitationRecord]:
    """Apply a query to an already-materialized record sequence."""
    selected = [r for r in records if matches(r, query)]
    return paginate(sort_invitations(selected, query), query)
