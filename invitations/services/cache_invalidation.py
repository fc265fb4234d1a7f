"""Cache Invalidation — evicts aggregate and per-record cache entries after store writes.

Invariants:
    - Subscribes to AFTER_SAVE and AFTER_MUTATE only: eviction always follows commit
    - Affected identities come from the pre-mutation match set plus any identity
      fields written by the update (a re-addressed record evicts its new owner too)
    - user_id == 0 and inviter_id == 0 have no aggregate entry to evict
    - Eviction is best-effort delete; nothing is recomputed here
"""

import logging
from collections.abc import Iterable
from typing import Any

from invitations.core.cache_keys import CacheKey, from_user_key, record_key, to_user_key
from invitations.core.invitation_hooks import InvitationHooks, NotificationPoint
from invitations.core.invitation_record import InvitationRecord
from invitations.core.repository_protocols import InvitationCache

logger = logging.getLogger(__name__)


def affected_cache_keys(
    records: Iterable[InvitationRecord], written: dict[str, Any] | None = None,
) -> set[CacheKey]:
    """Every cache key whose contents may change when `records` change."""
    keys: set[CacheKey] = set()
    for record in records:
        keys.add(record_key(record.id))
        if record.user_id:
            keys.add(to_user_key(user_id=record.user_id))
        if record.invitee_email:
            keys.add(to_user_key(invitee_email=record.invitee_email))
        if record.inviter_id:
            keys.add(from_user_key(record.inviter_id))

    written = written or {}
    if written.get("user_id"):
        keys.add(to_user_key(user_id=written["user_id"]))
    if written.get("invitee_email"):
        keys.add(to_user_key(invitee_email=written["invitee_email"]))
    if written.get("inviter_id"):
        keys.add(from_user_key(written["inviter_id"]))
    return keys


class CacheInvalidator:
    """Store listener that keeps the invitation cache coherent."""

    def __init__(self, cache: InvitationCache):
        self.cache = cache

    def subscribe(self, hooks: InvitationHooks) -> None:
        hooks.add_listener(NotificationPoint.AFTER_SAVE, self.after_save)
        hooks.add_listener(NotificationPoint.AFTER_MUTATE, self.after_mutate)

    async def after_save(self, record: InvitationRecord) -> None:
        await self._evict(affected_cache_keys([record]))

    async def after_mutate(
        self, records: list[InvitationRecord], written: dict[str, Any],
    ) -> None:
        await self._evict(affected_cache_keys(records, written))

    async def _evict(self, keys: set[CacheKey]) -> None:
        for key in keys:
            await self.cache.delete(key)
        if keys:
            logger.debug(f"Evicted {len(keys)} invitation cache entries")
