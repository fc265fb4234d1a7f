"""Cache Keys — structured {scope, identity} keys for the invitation cache.

Invariants:
    - Identity is a decimal user id or a URL-encoded email; scope keeps the key spaces apart
    - An email identity never collides with a numeric one (encoded emails always contain %40)
    - as_string() is the only place a key becomes a flat string
"""

from dataclasses import dataclass
from urllib.parse import quote

from invitations.core.domain_types import CacheScope


@dataclass(frozen=True)
class CacheKey:
    scope: CacheScope
    identity: str

    def as_string(self, prefix: str) -> str:
        return f"{prefix}:{self.scope.value}:{self.identity}"


def normalize_identity(user_id: int = 0, invitee_email: str = "") -> str:
    """User id when set, otherwise the URL-encoded email."""
    if user_id:
        return str(int(user_id))
    return quote(invitee_email, safe="")


def record_key(invitation_id: int) -> CacheKey:
    return CacheKey(CacheScope.RECORD, str(int(invitation_id)))


def to_user_key(user_id: int = 0, invitee_email: str = "") -> CacheKey:
    return CacheKey(CacheScope.TO_USER, normalize_identity(user_id, invitee_email))


def from_user_key(inviter_id: int) -> CacheKey:
    return CacheKey(CacheScope.FROM_USER, str(int(inviter_id)))
