"""Invitation Field Enforcement — required-field rules checked before any store access.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return the typed error on violation, None on success
    - Checks never raise; the service wraps the returned error in an OperationResult
"""

from invitations.core.domain_types import InvitationType
from invitations.core.errors import ErrorContext, InvalidArgumentError
from invitations.core.invitation_record import InvitationKey, NewInvitation


def check_invitation_fields(fields: NewInvitation) -> InvalidArgumentError | None:
    """Invitations need an invitee (user id or email) and an inviter."""
    missing = []
    if not (fields.user_id or fields.invitee_email):
        missing.append("user_id|invitee_email")
    if not fields.inviter_id:
        missing.append("inviter_id")
    if missing:
        return InvalidArgumentError(
            "Invitations must have an invitee and an inviter",
            missing,
            ErrorContext(user_id=fields.user_id or None, component_name=fields.component_name),
        )
    return None


def check_request_fields(fields: NewInvitation) -> InvalidArgumentError | None:
    """Requests need an identified requester."""
    if not fields.user_id:
        return InvalidArgumentError(
            "Requests must have a requesting user_id",
            ["user_id"],
            ErrorContext(component_name=fields.component_name),
        )
    return None


def check_new_record_fields(fields: NewInvitation) -> InvalidArgumentError | None:
    """Dispatch on type — the store calls this before every insert."""
    if fields.type == InvitationType.REQUEST:
        return check_request_fields(fields)
    return check_invitation_fields(fields)


def check_accept_key(
    key: InvitationKey, require_user_id: bool = False,
) -> InvalidArgumentError | None:
    """Accepting needs identity, component_name, component_action and item_id."""
    missing = []
    if require_user_id and not key.user_id:
        missing.append("user_id")
    elif not key.has_identity:
        missing.append("user_id|invitee_email")
    if not key.component_name:
        missing.append("component_name")
    if not key.component_action:
        missing.append("component_action")
    if not key.item_id:
        missing.append("item_id")
    if missing:
        return InvalidArgumentError(
            f"Accept requires a complete key; missing: {', '.join(missing)}",
            missing,
            ErrorContext(user_id=key.user_id or None, component_name=key.component_name or None),
        )
    return None


UPDATABLE_FIELDS = frozenset({
    "user_id", "inviter_id", "invitee_email", "component_name",
    "component_action", "item_id", "secondary_item_id", "type",
    "content", "invite_sent", "accepted",
})


def check_update_fields(set_fields: dict) -> InvalidArgumentError | None:
    """Only record columns may be written; id and date_modified are store-managed."""
    if not set_fields:
        return InvalidArgumentError("Nothing to update", [])
    unknown = sorted(set(set_fields) - UPDATABLE_FIELDS)
    if unknown:
        return InvalidArgumentError(f"Cannot update fields: {', '.join(unknown)}", unknown)
    return None
