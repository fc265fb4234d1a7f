"""Invitation Service — reconciliation of invitations and requests, plus cached read views.

Invariants:
    - Order of checks on create: required fields -> policy -> duplicate -> counterpart match
    - Only a SENT pending invitation auto-accepts an incoming request; drafts never do
    - Sending an invitation while a pending request exists accepts the key instead of
      flipping invite_sent
    - Accepting a key marks ALL pending invitations and requests for that key accepted,
      in one bulk update
    - A failed send inside add_invitation fails the add; the stored draft is kept
    - Aggregate views read the unfiltered superset for an identity from the cache
      (populating it on miss) and apply the caller's query in memory
    - Domain failures come back as OperationResult errors; DatabaseError propagates

Design Decisions:
    - Reconciliation lives here, not in the store: the store is a dumb CRUD + filter engine
    - Record cache entries hold [record] so one cache interface serves every scope
"""

import logging
from dataclasses import replace

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from invitations.core.cache_keys import CacheKey, from_user_key, record_key, to_user_key
from invitations.core.component_registry import ComponentRegistry
from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter,
)
from invitations.core.enforce_invitations import (
    check_accept_key, check_invitation_fields, check_request_fields, check_update_fields,
)
from invitations.core.errors import (
    DuplicateInvitationError, ErrorContext, InvalidArgumentError,
    InvitationNotFoundError, OperationResult, PolicyDeniedError,
)
from invitations.core.invitation_hooks import (
    InvitationHooks, NotificationPoint, PolicyPoint, ResultFilterPoint,
)
from invitations.core.invitation_query import (
    InvitationQuery, filter_invitations, key_query,
)
from invitations.core.invitation_record import (
    InvitationKey, InvitationRecord, NewInvitation,
)
from invitations.core.repository_protocols import InvitationCache, InvitationStore
from invitations.services.hook_dispatch import is_allowed, notify

logger = logging.getLogger(__name__)


# ─── View defaults ───────────────────────────────────────────────

def user_invitations_query(**options) -> InvitationQuery:
    """Defaults for invitations addressed to a user: sent, pending invites."""
    return InvitationQuery(**{
        "type": InvitationType.INVITE,
        "invite_sent": SentFilter.SENT,
        "accepted": AcceptedFilter.PENDING,
        **options,
    })


def user_requests_query(**options) -> InvitationQuery:
    """Defaults for requests made by a user: pending requests, any sent state."""
    return InvitationQuery(**{
        "accepted": AcceptedFilter.PENDING,
        **options,
        "type": InvitationType.REQUEST,
        "invite_sent": SentFilter.ALL,
    })


def invitations_from_user_query(**options) -> InvitationQuery:
    """Defaults for invitations sent by an inviter: every invite, any state."""
    return InvitationQuery(**{
        "type": InvitationType.INVITE,
        "invite_sent": SentFilter.ALL,
        "accepted": AcceptedFilter.ALL,
        **options,
    })


def is_email(value: str | None) -> bool:
    if not value:
        return False
    try:
        validate_email(value)
    except PydanticCustomError:
        return False
    return True


class InvitationService:
    """High-level invitation operations over an InvitationStore and an InvitationCache."""

    def __init__(
        self,
        store: InvitationStore,
        cache: InvitationCache,
        hooks: InvitationHooks,
        registry: ComponentRegistry | None = None,
    ):
        self.store = store
        self.cache = cache
        self.hooks = hooks
        self.registry = registry or ComponentRegistry()

    # ─── Create ──────────────────────────────────────────────────

    async def add_invitation(self, fields: NewInvitation) -> OperationResult:
        """Store a draft invitation; send it right away when fields.invite_sent is set."""
        fields = replace(fields, type=InvitationType.INVITE)
        error = check_invitation_fields(fields)
        if error:
            return OperationResult.failure(error)

        if not await is_allowed(self.hooks, PolicyPoint.ALLOW_INVITATION, fields):
            return OperationResult.failure(PolicyDeniedError(
                PolicyPoint.ALLOW_INVITATION.value, _context(fields.key),
            ))

        existing = await self.store.query(key_query(
            fields.key, inviter_id=fields.inviter_id, type=InvitationType.INVITE,
        ))
        if existing:
            logger.info(
                "Duplicate invitation rejected",
                extra={"user_id": fields.user_id, "inviter_id": fields.inviter_id,
                       "component_name": fields.component_name},
            )
            return OperationResult.failure(
                DuplicateInvitationError("invite", _context(fields.key)),
            )

        created = await self.store.create(
            replace(fields, invite_sent=False, accepted=False),
        )
        if not created or not fields.invite_sent:
            return created

        sent = await self.send_invitation_by_id(created.value)
        if not sent:
            logger.warning(
                "Invitation stored as draft but could not be sent",
                extra={"invitation_id": created.value, "error_code": sent.error.code},
            )
            return sent
        return created

    async def add_request(self, fields: NewInvitation) -> OperationResult:
        """Store a request, or accept the key at once when a sent invitation exists."""
        fields = replace(fields, type=InvitationType.REQUEST, inviter_id=0)
        error = check_request_fields(fields)
        if error:
            return OperationResult.failure(error)

        if not await is_allowed(self.hooks, PolicyPoint.ALLOW_REQUEST, fields):
            return OperationResult.failure(PolicyDeniedError(
                PolicyPoint.ALLOW_REQUEST.value, _context(fields.key),
            ))

        existing = await self.get_requests(key_query(fields.key))
        if existing:
            logger.info(
                "Duplicate request rejected",
                extra={"user_id": fields.user_id, "component_name": fields.component_name},
            )
            return OperationResult.failure(
                DuplicateInvitationError("request", _context(fields.key)),
            )

        sent_invites = await self.store.query(key_query(
            fields.key, type=InvitationType.INVITE, invite_sent=SentFilter.SENT,
        ))
        if sent_invites:
            accepted = await self.accept_invitation(fields.key)
            if not accepted:
                return accepted
            logger.info(
                "Request matched a sent invitation; both accepted",
                extra={"user_id": fields.user_id, "component_name": fields.component_name},
            )
            return await self.store.create(replace(fields, accepted=True))

        return await self.store.create(replace(fields, accepted=False))

    # ─── Send ────────────────────────────────────────────────────

    async def send_invitation_by_id(self, invitation_id: int) -> OperationResult:
        """Mark an invitation sent, or accept the key if a request is already waiting."""
        invitation = await self.get_invitation_by_id(invitation_id)
        if invitation is None:
            return OperationResult.failure(InvitationNotFoundError(invitation_id))
        if invitation.type != InvitationType.INVITE:
            return OperationResult.failure(InvalidArgumentError(
                "Only invitations can be sent", ["type"],
                ErrorContext(invitation_id=invitation_id),
            ))

        await notify(self.hooks, NotificationPoint.BEFORE_SEND, invitation)
        if not await is_allowed(self.hooks, PolicyPoint.ALLOW_SEND, invitation):
            return OperationResult.failure(PolicyDeniedError(
                PolicyPoint.ALLOW_SEND.value, ErrorContext(invitation_id=invitation_id),
            ))

        waiting = await self.get_requests(key_query(invitation.key))
        if waiting:
            logger.info(
                "Sent invitation matched a pending request; accepting",
                extra={"invitation_id": invitation_id, "user_id": invitation.user_id},
            )
            return await self.accept_request(invitation.key)

        return await self.mark_sent_by_id(invitation_id)

    # ─── Accept ──────────────────────────────────────────────────

    async def accept_invitation(self, key: InvitationKey) -> OperationResult:
        """Accept every pending invitation and request for `key`."""
        error = check_accept_key(key)
        if error:
            return OperationResult.failure(error)
        if not await is_allowed(self.hooks, PolicyPoint.ALLOW_ACCEPT_INVITATION, key):
            return OperationResult.failure(PolicyDeniedError(
                PolicyPoint.ALLOW_ACCEPT_INVITATION.value, _context(key),
            ))
        return await self.mark_accepted(key_query(key))

    async def accept_request(self, key: InvitationKey) -> OperationResult:
        """Accept every pending request and invitation for `key`; needs a user id."""
        error = check_accept_key(key, require_user_id=True)
        if error:
            return OperationResult.failure(error)
        if not await is_allowed(self.hooks, PolicyPoint.ALLOW_ACCEPT_REQUEST, key):
            return OperationResult.failure(PolicyDeniedError(
                PolicyPoint.ALLOW_ACCEPT_REQUEST.value, _context(key),
            ))
        return await self.mark_accepted(key_query(key))

    # ─── Update ──────────────────────────────────────────────────

    async def update_invitation(
        self, set_fields: dict, where: InvitationQuery,
    ) -> OperationResult:
        """Bulk update of pending records; accepted records are never touched."""
        error = check_update_fields(set_fields)
        if error:
            return OperationResult.failure(error)
        where = where.with_overrides(accepted=AcceptedFilter.PENDING)
        try:
            count = await self.store.update(set_fields, where)
        except DuplicateInvitationError as e:
            return OperationResult.failure(e)
        return OperationResult.success(count)

    async def mark_sent_by_id(self, invitation_id: int) -> OperationResult:
        return await self.mark_sent(InvitationQuery(id=invitation_id))

    async def mark_sent(self, where: InvitationQuery) -> OperationResult:
        where = where.with_overrides(
            type=InvitationType.INVITE, invite_sent=SentFilter.DRAFT,
        )
        count = await self.store.update({"invite_sent": True}, where)
        return OperationResult.success(count)

    async def mark_accepted_by_id(self, invitation_id: int) -> OperationResult:
        return await self.mark_accepted(InvitationQuery(id=invitation_id))

    async def mark_accepted(self, where: InvitationQuery) -> OperationResult:
        where = where.with_overrides(accepted=AcceptedFilter.PENDING)
        count = await self.store.update({"accepted": True}, where)
        logger.info("Marked invitations accepted", extra={"affected": count})
        return OperationResult.success(count)

    # ─── Delete ──────────────────────────────────────────────────

    async def delete_invitation_by_id(self, invitation_id: int) -> OperationResult:
        return OperationResult.success(await self.store.delete_by_id(invitation_id))

    async def delete_invitations(self, where: InvitationQuery) -> OperationResult:
        if where.type is None:
            where = where.with_overrides(type=InvitationType.INVITE)
        return OperationResult.success(await self.store.delete(where))

    async def delete_requests(self, where: InvitationQuery) -> OperationResult:
        where = where.with_overrides(type=InvitationType.REQUEST)
        return OperationResult.success(await self.store.delete(where))

    async def delete_all_invitations_by_component(
        self, component_name: str, component_action: str | None = None,
    ) -> OperationResult:
        """Remove every record of a component (and action), accepted ones included."""
        where = InvitationQuery(
            component_name=component_name,
            component_action=component_action,
            invite_sent=SentFilter.ALL,
            accepted=AcceptedFilter.ALL,
        )
        return OperationResult.success(await self.store.delete(where))

    # ─── Read ────────────────────────────────────────────────────

    async def get_invitation_by_id(self, invitation_id: int) -> InvitationRecord | None:
        key = record_key(invitation_id)
        cached = await self.cache.get(key)
        if cached:
            return cached[0]
        record = await self.store.get_by_id(invitation_id)
        if record is not None:
            await self.cache.set(key, [record])
        return record

    async def get_invitations(
        self, query: InvitationQuery | None = None,
    ) -> list[InvitationRecord]:
        return await self.store.query(query or InvitationQuery())

    async def get_requests(
        self, query: InvitationQuery | None = None,
    ) -> list[InvitationRecord]:
        query = (query or InvitationQuery()).with_overrides(
            type=InvitationType.REQUEST, inviter_id=0, invite_sent=SentFilter.ALL,
        )
        return await self.store.query(query)

    async def get_user_invitations(
        self,
        user_id: int = 0,
        query: InvitationQuery | None = None,
        invitee_email: str | None = None,
    ) -> list[InvitationRecord]:
        """Records addressed to a user id or, when a valid email is given, to that email."""
        query = query or user_invitations_query()
        if is_email(invitee_email):
            key = to_user_key(invitee_email=invitee_email)
            superset_query = InvitationQuery(
                invitee_email=invitee_email,
                invite_sent=SentFilter.ALL, accepted=AcceptedFilter.ALL,
            )
        elif user_id:
            key = to_user_key(user_id=user_id)
            superset_query = InvitationQuery(
                user_id=user_id,
                invite_sent=SentFilter.ALL, accepted=AcceptedFilter.ALL,
            )
        else:
            return []

        records = filter_invitations(await self._superset(key, superset_query), query)
        point = (
            ResultFilterPoint.USER_REQUESTS if query.type == InvitationType.REQUEST
            else ResultFilterPoint.USER_INVITATIONS
        )
        return self.hooks.apply_result_filters(
            point, records, user_id=user_id, query=query,
        )

    async def get_user_requests(
        self, user_id: int, query: InvitationQuery | None = None,
    ) -> list[InvitationRecord]:
        if query is None:
            query = user_requests_query()
        else:
            query = query.with_overrides(
                type=InvitationType.REQUEST, invite_sent=SentFilter.ALL,
            )
        return await self.get_user_invitations(user_id, query)

    async def get_invitations_from_user(
        self, inviter_id: int, query: InvitationQuery | None = None,
    ) -> list[InvitationRecord]:
        if not inviter_id:
            return []
        query = query or invitations_from_user_query()
        superset_query = InvitationQuery(
            inviter_id=inviter_id,
            invite_sent=SentFilter.ALL, accepted=AcceptedFilter.ALL,
        )
        records = filter_invitations(
            await self._superset(from_user_key(inviter_id), superset_query), query,
        )
        return self.hooks.apply_result_filters(
            ResultFilterPoint.INVITATIONS_FROM_USER, records,
            inviter_id=inviter_id, query=query,
        )

    def get_registered_components(self) -> list[str]:
        """Active components that registered an invitation callback."""
        return self.hooks.apply_result_filters(
            ResultFilterPoint.REGISTERED_COMPONENTS,
            self.registry.registered_components(),
            active_components=self.registry.active_components,
        )

    async def _superset(
        self, key: CacheKey, superset_query: InvitationQuery,
    ) -> list[InvitationRecord]:
        cached = await self.cache.get(key)
        if cached is not None:
            return cached
        records = await self.store.query(superset_query)
        await self.cache.set(key, records)
        return records


def _context(key: InvitationKey) -> ErrorContext:
    return ErrorContext(
        user_id=key.user_id or None, component_name=key.component_name or None,
    )
