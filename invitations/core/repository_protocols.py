"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; the pure filter/enforcement
      functions that feed them stay synchronous
"""

from typing import Any, Protocol

from invitations.core.cache_keys import CacheKey
from invitations.core.errors import OperationResult
from invitations.core.invitation_query import InvitationQuery
from invitations.core.invitation_record import InvitationRecord, NewInvitation


class InvitationStore(Protocol):
    """Contract for invitation persistence — implemented by shell."""
    async def create(self, fields: NewInvitation) -> OperationResult: ...
    async def get_by_id(self, invitation_id: int) -> InvitationRecord | None: ...
    async def query(self, query: InvitationQuery) -> list[InvitationRecord]: ...
    async def update(
        self, set_fields: dict[str, Any], where: InvitationQuery,
    ) -> int: ...
    async def delete_by_id(self, invitation_id: int) -> int: ...
    async def delete(self, where: InvitationQuery) -> int: ...


class InvitationCache(Protocol):
    """Contract for the invitation cache — a miss returns None, never raises."""
    async def get(self, key: CacheKey) -> list[InvitationRecord] | None: ...
    async def set(self, key: CacheKey, records: list[InvitationRecord]) -> None: ...
    async def delete(self, key: CacheKey) -> None: ...
    async def ping(self) -> bool: ...
