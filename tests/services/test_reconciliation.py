"""Reconciliation — invitation/request matching, send and accept cascades.

Invariants:
    - Dedup: a second identical pending invitation or request fails, one record stored
    - A SENT invitation + a request for the same key accept each other, in either order
    - A DRAFT invitation never auto-accepts a request
    - Sending a draft while a request waits accepts both instead of flipping invite_sent
    - Accept marks every pending invitation AND request for the key in one bulk update
    - Duplicate checks run before matching checks
    - Policies and validation fail with typed results, never exceptions
"""

from invitations.core.domain_types import AcceptedFilter, InvitationType, SentFilter
from invitations.core.invitation_hooks import NotificationPoint, PolicyPoint
from invitations.core.invitation_query import InvitationQuery
from invitations.core.invitation_record import InvitationKey, NewInvitation


def _invitation(**overrides) -> NewInvitation:
    fields = {
        "user_id": 3,
        "inviter_id": 1,
        "component_name": "cakes",
        "component_action": "cupcakes",
        "item_id": 1,
        "type": InvitationType.INVITE,
    }
    fields.update(overrides)
    return NewInvitation(**fields)


def _request(**overrides) -> NewInvitation:
    fields = {
        "user_id": 3,
        "component_name": "cakes",
        "component_action": "cupcakes",
        "item_id": 1,
        "type": InvitationType.REQUEST,
    }
    fields.update(overrides)
    return NewInvitation(**fields)


KEY = InvitationKey(
    user_id=3, component_name="cakes", component_action="cupcakes", item_id=1,
)


def _accepted(record_type: InvitationType) -> InvitationQuery:
    return InvitationQuery(
        user_id=3, component_name="cakes",
        accepted=AcceptedFilter.ACCEPTED, type=record_type,
    )


async def _accepted_ids(service, record_type: InvitationType) -> list[int]:
    return [r.id for r in await service.get_invitations(_accepted(record_type))]


# ─── Dedup ───────────────────────────────────────────────────────

async def test_duplicate_invitation_rejected(service):
    first = await service.add_invitation(_invitation())
    second = await service.add_invitation(_invitation())
    assert first.ok
    assert not second
    assert second.error.code == "DUPLICATE"
    stored = await service.get_invitations(InvitationQuery(user_id=3))
    assert [r.id for r in stored] == [first.value]


async def test_same_key_from_different_inviter_is_not_a_duplicate(service):
    assert await service.add_invitation(_invitation(inviter_id=1))
    assert await service.add_invitation(_invitation(inviter_id=2))


async def test_duplicate_request_rejected(service):
    assert await service.add_request(_request())
    second = await service.add_request(_request())
    assert not second
    assert second.error.code == "DUPLICATE"
    assert len(await service.get_requests(InvitationQuery(user_id=3))) == 1


async def test_duplicate_check_runs_before_matching(service):
    await service.add_request(_request())
    await service.add_invitation(_invitation())
    again = await service.add_request(_request())
    assert again.error.code == "DUPLICATE"
    assert await _accepted_ids(service, InvitationType.INVITE) == []


# ─── Invite then request ─────────────────────────────────────────

async def test_sent_invite_then_request_accepts_both(service):
    invite = await service.add_invitation(_invitation(invite_sent=True))
    request = await service.add_request(_request())
    assert invite.ok and request.ok

    assert await _accepted_ids(service, InvitationType.INVITE) == [invite.value]
    assert await _accepted_ids(service, InvitationType.REQUEST) == [request.value]


async def test_unsent_invite_then_request_does_not_accept(service):
    await service.add_invitation(_invitation(invite_sent=False))
    await service.add_request(_request())

    assert await _accepted_ids(service, InvitationType.INVITE) == []
    assert await _accepted_ids(service, InvitationType.REQUEST) == []


async def test_sending_draft_after_request_accepts_both(service):
    invite = await service.add_invitation(_invitation())
    request = await service.add_request(_request())

    sent = await service.send_invitation_by_id(invite.value)

    assert sent.ok
    assert sent.value == 2
    assert await _accepted_ids(service, InvitationType.INVITE) == [invite.value]
    assert await _accepted_ids(service, InvitationType.REQUEST) == [request.value]


async def test_request_then_sent_invite_accepts_both(service):
    request = await service.add_request(_request())
    invite = await service.add_invitation(_invitation(invite_sent=True))
    assert invite.ok

    assert await _accepted_ids(service, InvitationType.INVITE) == [invite.value]
    assert await _accepted_ids(service, InvitationType.REQUEST) == [request.value]


async def test_request_for_other_item_does_not_match(service):
    await service.add_invitation(_invitation(invite_sent=True))
    await service.add_request(_request(item_id=2))
    assert await _accepted_ids(service, InvitationType.INVITE) == []


async def test_email_invitation_never_matches_user_request(service):
    await service.add_invitation(
        _invitation(user_id=0, invitee_email="cake@example.com", invite_sent=True),
    )
    await service.add_request(_request())
    assert await _accepted_ids(service, InvitationType.REQUEST) == []


# ─── Send ────────────────────────────────────────────────────────

async def test_send_flips_invite_sent(service):
    invite = await service.add_invitation(_invitation())
    sent = await service.send_invitation_by_id(invite.value)
    assert sent.value == 1
    record = await service.get_invitation_by_id(invite.value)
    assert record.invite_sent
    assert not record.accepted


async def test_send_missing_invitation_is_not_found(service):
    result = await service.send_invitation_by_id(404)
    assert not result
    assert result.error.code == "NOT_FOUND"


async def test_send_request_is_invalid(service):
    request = await service.add_request(_request())
    result = await service.send_invitation_by_id(request.value)
    assert result.error.code == "INVALID_ARGUMENT"


async def test_send_denied_by_policy_keeps_draft(service, hooks):
    hooks.add_policy(PolicyPoint.ALLOW_SEND, lambda record: False)
    invite = await service.add_invitation(_invitation())
    result = await service.send_invitation_by_id(invite.value)
    assert result.error.code == "POLICY_DENIED"
    assert not (await service.get_invitation_by_id(invite.value)).invite_sent


async def test_failed_send_fails_add_but_keeps_draft(service, hooks):
    hooks.add_policy(PolicyPoint.ALLOW_SEND, lambda record: False)
    result = await service.add_invitation(_invitation(invite_sent=True))
    assert result.error.code == "POLICY_DENIED"
    drafts = await service.get_invitations(
        InvitationQuery(user_id=3, invite_sent=SentFilter.DRAFT),
    )
    assert len(drafts) == 1


async def test_before_send_notified_with_record(service, hooks):
    seen = []
    hooks.add_listener(NotificationPoint.BEFORE_SEND, lambda record: seen.append(record.id))
    invite = await service.add_invitation(_invitation(invite_sent=True))
    assert seen == [invite.value]


# ─── Accept ──────────────────────────────────────────────────────

async def test_accept_invitation_marks_every_pending_record_for_key(service):
    await service.add_invitation(_invitation(inviter_id=1))
    await service.add_invitation(_invitation(inviter_id=2))
    await service.add_invitation(_invitation(item_id=2))

    result = await service.accept_invitation(KEY)

    assert result.value == 2
    assert len(await _accepted_ids(service, InvitationType.INVITE)) == 2


async def test_accept_with_incomplete_key_is_invalid(service):
    result = await service.accept_invitation(InvitationKey(user_id=3, component_name="cakes"))
    assert result.error.code == "INVALID_ARGUMENT"
    assert "component_action" in result.error.fields


async def test_accept_request_requires_user_id(service):
    key = InvitationKey(
        invitee_email="cake@example.com", component_name="cakes",
        component_action="cupcakes", item_id=1,
    )
    result = await service.accept_request(key)
    assert result.error.fields == ["user_id"]


async def test_accept_request_denied_by_policy(service, hooks):
    hooks.add_policy(PolicyPoint.ALLOW_ACCEPT_REQUEST, lambda key: False)
    await service.add_request(_request())
    result = await service.accept_request(KEY)
    assert result.error.code == "POLICY_DENIED"
    assert await _accepted_ids(service, InvitationType.REQUEST) == []


async def test_accept_with_nothing_pending_affects_zero(service):
    result = await service.accept_invitation(KEY)
    assert result.ok
    assert result.value == 0


# ─── Create validation & policy ──────────────────────────────────

async def test_invitation_without_inviter_is_invalid(service):
    result = await service.add_invitation(_invitation(inviter_id=0))
    assert result.error.code == "INVALID_ARGUMENT"


async def test_request_inviter_is_forced_to_zero(service):
    request = await service.add_request(_request(inviter_id=9))
    record = await service.get_invitation_by_id(request.value)
    assert record.inviter_id == 0
    assert record.type == InvitationType.REQUEST


async def test_allow_invitation_policy_receives_fields(service, hooks):
    seen = []

    async def deny_cakes(fields):
        seen.append(fields)
        return fields.component_name != "cakes"

    hooks.add_policy(PolicyPoint.ALLOW_INVITATION, deny_cakes)
    denied = await service.add_invitation(_invitation())
    allowed = await service.add_invitation(_invitation(component_name="groups"))
    assert denied.error.code == "POLICY_DENIED"
    assert allowed.ok
    assert [f.component_name for f in seen] == ["cakes", "groups"]


async def test_allow_request_policy_denies(service, hooks):
    hooks.add_policy(PolicyPoint.ALLOW_REQUEST, lambda fields: False)
    result = await service.add_request(_request())
    assert result.error.code == "POLICY_DENIED"
    assert await service.get_requests() == []


# ─── Update / delete ─────────────────────────────────────────────

async def test_update_invitation_touches_pending_only(service):
    pending = await service.add_invitation(_invitation(item_id=1))
    accepted = await service.add_invitation(_invitation(item_id=2))
    await service.mark_accepted_by_id(accepted.value)

    result = await service.update_invitation(
        {"content": "updated"}, InvitationQuery(user_id=3, accepted=AcceptedFilter.ALL),
    )

    assert result.value == 1
    assert (await service.get_invitation_by_id(pending.value)).content == "updated"
    assert (await service.get_invitation_by_id(accepted.value)).content == ""


async def test_update_invitation_rejects_unknown_fields(service):
    result = await service.update_invitation({"id": 1}, InvitationQuery())
    assert result.error.code == "INVALID_ARGUMENT"


async def test_update_invitation_onto_existing_pending_key_fails(service):
    first = await service.add_invitation(_invitation(item_id=1))
    await service.add_invitation(_invitation(item_id=2))

    result = await service.update_invitation({"item_id": 2}, InvitationQuery(id=first.value))

    assert result.error.code == "DUPLICATE"
    moved = await service.get_invitations(InvitationQuery(item_id=2))
    assert len(moved) == 1
    assert (await service.get_invitation_by_id(first.value)).item_id == 1


async def test_mark_sent_only_touches_draft_invites(service):
    invite = await service.add_invitation(_invitation())
    await service.add_request(_request(item_id=2))
    result = await service.mark_sent(InvitationQuery(user_id=3))
    assert result.value == 1
    assert (await service.get_invitation_by_id(invite.value)).invite_sent


async def test_delete_invitations_defaults_to_invites(service):
    await service.add_invitation(_invitation())
    await service.add_request(_request(item_id=2))
    result = await service.delete_invitations(InvitationQuery(user_id=3))
    assert result.value == 1
    assert len(await service.get_requests(InvitationQuery(user_id=3))) == 1


async def test_delete_requests_only_deletes_requests(service):
    await service.add_invitation(_invitation())
    await service.add_request(_request(item_id=2))
    result = await service.delete_requests(InvitationQuery(user_id=3))
    assert result.value == 1
    assert len(await service.get_invitations(InvitationQuery(user_id=3))) == 1


async def test_delete_all_by_component_includes_accepted(service):
    first = await service.add_invitation(_invitation())
    await service.add_invitation(_invitation(component_action="muffins"))
    await service.add_invitation(_invitation(component_name="groups"))
    await service.mark_accepted_by_id(first.value)

    result = await service.delete_all_invitations_by_component("cakes")
    assert result.value == 2
    remaining = await service.get_invitations(InvitationQuery(accepted=AcceptedFilter.ALL))
    assert [r.component_name for r in remaining] == ["groups"]


async def test_delete_all_by_component_and_action(service):
    await service.add_invitation(_invitation())
    await service.add_invitation(_invitation(component_action="muffins"))
    result = await service.delete_all_invitations_by_component("cakes", "muffins")
    assert result.value == 1


async def test_delete_by_id_missing_affects_zero(service):
    result = await service.delete_invitation_by_id(404)
    assert result.ok
    assert result.value == 0
