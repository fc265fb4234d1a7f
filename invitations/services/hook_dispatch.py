"""Hook Dispatch — runs registered policies and listeners, sync or async.

Invariants:
    - Policies run in registration order; the first False short-circuits to deny
    - Listener return values are ignored; listener exceptions propagate to the caller
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from invitations.core.invitation_hooks import (
    InvitationHooks, NotificationPoint, PolicyPoint,
)

logger = logging.getLogger(__name__)


async def run_callback(callback: Callable[..., Any], *args: Any) -> Any:
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def is_allowed(hooks: InvitationHooks, point: PolicyPoint, *args: Any) -> bool:
    for callback in hooks.policies.get(point, ()):
        if not await run_callback(callback, *args):
            logger.info(f"Policy {point.value} denied operation")
            return False
    return True


async def notify(hooks: InvitationHooks, point: NotificationPoint, *args: Any) -> None:
    for callback in hooks.notifications.get(point, ()):
        await run_callback(callback, *args)
