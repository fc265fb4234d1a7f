"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All tri-state filters encoded as Enums — no raw string matching in filter logic
    - SORTABLE_FIELDS is the closed set of columns order_by may name

Design Decisions:
    - str Enums: serialize to JSON and query strings without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class InvitationType(str, Enum):
    """Record discriminant — one table holds both kinds."""
    INVITE = "invite"
    REQUEST = "request"


class SentFilter(str, Enum):
    """Tri-state over the invite_sent column."""
    DRAFT = "draft"
    SENT = "sent"
    ALL = "all"


class AcceptedFilter(str, Enum):
    """Tri-state over the accepted column."""
    ACCEPTED = "accepted"
    PENDING = "pending"
    ALL = "all"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class CacheScope(str, Enum):
    """Cache partitions. Each scope has its own key space."""
    RECORD = "record"
    TO_USER = "to_user"
    FROM_USER = "from_user"


class CacheBackend(str, Enum):
    REDIS = "redis"
    MEMORY = "memory"
    NONE = "none"


SORTABLE_FIELDS = frozenset({
    "id",
    "user_id",
    "inviter_id",
    "invitee_email",
    "component_name",
    "component_action",
    "item_id",
    "secondary_item_id",
    "type",
    "date_modified",
    "invite_sent",
    "accepted",
})
