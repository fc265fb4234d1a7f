"""Error Hierarchy — typed, categorized failures for every invitation operation.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - Domain errors are RETURNED inside OperationResult, never raised by the service layer
    - DatabaseError is raised (storage failures propagate to the caller)
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with InvitationsError base: FastAPI global handler catches all
    - OperationResult keeps "failed" distinct from "zero rows affected" (value == 0 is still ok)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    POLICY = "policy"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    invitation_id: int | None = None
    user_id: int | None = None
    component_name: str | None = None
    debug_info: dict[str, Any] | None = None


class InvitationsError(Exception):
    """Base exception for all invitation errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "invitation_id": self.context.invitation_id,
                    "user_id": self.context.user_id,
                    "component_name": self.context.component_name,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidArgumentError(InvitationsError):
    """Required identity or key fields are missing."""
    def __init__(self, message: str, fields: list[str], context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.fields = fields


class DuplicateInvitationError(InvitationsError):
    """An equivalent pending record already exists."""
    def __init__(self, record_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"An equivalent pending {record_type} already exists",
            "DUPLICATE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.record_type = record_type


class PolicyDeniedError(InvitationsError):
    """A registered policy vetoed the operation."""
    def __init__(self, policy: str, context: ErrorContext | None = None):
        super().__init__(
            f"Operation denied by policy '{policy}'",
            "POLICY_DENIED", ErrorCategory.POLICY,
            ErrorSeverity.WARNING, context, 403,
        )
        self.policy = policy


class InvitationNotFoundError(InvitationsError):
    """Lookup by id matched no row."""
    def __init__(self, invitation_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.invitation_id = invitation_id
        super().__init__(
            f"Invitation '{invitation_id}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, ctx, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(InvitationsError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


# ─── Operation Result ───────────────────────────────────────────

@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating operation.

    value is the new record id for creates and the affected row count for
    updates and deletes. A failed result carries the typed error instead.
    """
    value: int | None = None
    error: InvitationsError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: int) -> "OperationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: InvitationsError) -> "OperationResult":
        return cls(error=error)
