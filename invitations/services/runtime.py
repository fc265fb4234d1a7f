"""Invitation Runtime — process-wide collaborators built once at startup.

Invariants:
    - One InvitationHooks, one InvitationCache and one ComponentRegistry per process
    - The CacheInvalidator is subscribed exactly once, when the runtime is built
    - service_for(db) is cheap: a new store + service per request/session, shared collaborators
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from invitations.core.component_registry import ComponentRegistry
from invitations.core.invitation_hooks import InvitationHooks
from invitations.core.repository_protocols import InvitationCache
from invitations.services.cache_invalidation import CacheInvalidator
from invitations.services.invitation_service import InvitationService
from invitations.services.invitation_store import SqlInvitationStore


@dataclass
class InvitationRuntime:
    cache: InvitationCache
    hooks: InvitationHooks = field(default_factory=InvitationHooks)
    registry: ComponentRegistry = field(default_factory=ComponentRegistry)

    def __post_init__(self) -> None:
        CacheInvalidator(self.cache).subscribe(self.hooks)

    def service_for(self, db: AsyncSession) -> InvitationService:
        store = SqlInvitationStore(db, self.hooks)
        return InvitationService(store, self.cache, self.hooks, self.registry)
