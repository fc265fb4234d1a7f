"""Invitation Hooks — tests for the explicit extension-point registry.

Tests cover:
    - Callbacks stored per enumerated point, in registration order
    - apply_result_filters threads the value through every filter with context
    - Points with no callbacks leave values untouched
"""

from invitations.core.invitation_hooks import (
    InvitationHooks, NotificationPoint, PolicyPoint, ResultFilterPoint,
)


def test_callbacks_kept_per_point_in_order():
    hooks = InvitationHooks()
    first, second = (lambda *a: True), (lambda *a: False)
    hooks.add_policy(PolicyPoint.ALLOW_SEND, first)
    hooks.add_policy(PolicyPoint.ALLOW_SEND, second)
    hooks.add_listener(NotificationPoint.AFTER_SAVE, first)
    assert hooks.policies[PolicyPoint.ALLOW_SEND] == [first, second]
    assert hooks.notifications[NotificationPoint.AFTER_SAVE] == [first]
    assert PolicyPoint.ALLOW_REQUEST not in hooks.policies


def test_result_filters_chain_with_context():
    hooks = InvitationHooks()
    seen = {}

    def drop_first(value, **context):
        seen.update(context)
        return value[1:]

    hooks.add_result_filter(ResultFilterPoint.USER_INVITATIONS, drop_first)
    hooks.add_result_filter(ResultFilterPoint.USER_INVITATIONS, lambda v, **c: v + ["x"])
    result = hooks.apply_result_filters(
        ResultFilterPoint.USER_INVITATIONS, ["a", "b"], user_id=3,
    )
    assert result == ["b", "x"]
    assert seen == {"user_id": 3}


def test_no_filters_returns_value_unchanged():
    hooks = InvitationHooks()
    value = ["groups"]
    assert hooks.apply_result_filters(ResultFilterPoint.REGISTERED_COMPONENTS, value) is value
