"""Invitation Hooks — enumerated extension points for policies, notifications and result filters.

Invariants:
    - Every extension point is an Enum member — no free-form hook names
    - Policies default to allow: an empty list allows, any False denies
    - Result filters are applied in registration order and never touch stored data
    - The registry is a plain holder; awaiting async callbacks is the service's job

Design Decisions:
    - Explicit registry object injected into the service instead of global event dispatch
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PolicyPoint(str, Enum):
    """Allow/deny decisions consulted before an operation proceeds."""
    ALLOW_INVITATION = "allow_invitation"
    ALLOW_REQUEST = "allow_request"
    ALLOW_SEND = "allow_send"
    ALLOW_ACCEPT_INVITATION = "allow_accept_invitation"
    ALLOW_ACCEPT_REQUEST = "allow_accept_request"


class NotificationPoint(str, Enum):
    """Lifecycle events. Return values are ignored."""
    BEFORE_SEND = "before_send"
    AFTER_SAVE = "after_save"
    BEFORE_MUTATE = "before_mutate"
    AFTER_MUTATE = "after_mutate"


class ResultFilterPoint(str, Enum):
    """Post-processing of lists returned to callers."""
    USER_INVITATIONS = "user_invitations"
    USER_REQUESTS = "user_requests"
    INVITATIONS_FROM_USER = "invitations_from_user"
    REGISTERED_COMPONENTS = "registered_components"


@dataclass
class InvitationHooks:
    """Callbacks registered per extension point."""

    policies: dict[PolicyPoint, list[Callable[..., Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )
    notifications: dict[NotificationPoint, list[Callable[..., Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )
    result_filters: dict[ResultFilterPoint, list[Callable[..., Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )

    def add_policy(self, point: PolicyPoint, callback: Callable[..., Any]) -> None:
        self.policies[point].append(callback)

    def add_listener(self, point: NotificationPoint, callback: Callable[..., Any]) -> None:
        self.notifications[point].append(callback)

    def add_result_filter(
        self, point: ResultFilterPoint, callback: Callable[..., Any],
    ) -> None:
        self.result_filters[point].append(callback)

    def apply_result_filters(
        self, point: ResultFilterPoint, value: Any, **context: Any,
    ) -> Any:
        """Thread `value` through every filter for `point`."""
        for callback in self.result_filters.get(point, ()):
            value = callback(value, **context)
        return value
