"""Error Hierarchy — typed, categorized exceptions for every profile search failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) never reach the store; store errors (500-level) come only from it
    - to_response() produces the response envelope: {"error": str, "code": str, ...}
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ProfileSearchError base: FastAPI global handler catches all
    - ErrorContext as dataclass: operation/query annotations without coupling to logging
    - Nothing here retries; StoreUnavailableError is retried (if at all) by the caller
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    query_type: str | None = None
    debug_info: dict[str, Any] | None = None


class ProfileSearchError(Exception):
    """Base exception for all profile search errors."""

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
        """Convert to the standard response envelope."""
        return {
            "error": self.message,
            "code": self.code,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationRejectedError(ProfileSearchError):
    """Malformed, incomplete or unexpected-field query."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "VALIDATION_REJECTED", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class EmptyQueryRejectedError(ValidationRejectedError):
    """No search constraints supplied."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("empty query", context)
        self.code = "EMPTY_QUERY"


class RecordNotFoundError(ProfileSearchError):
    """Well-formed query with zero matches. Not a failure, but not a success either."""
    def __init__(
        self, message: str = "no profiles found", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "RECORD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


class UniquenessViolationError(ProfileSearchError):
    """Creation attempted with an identifying field that already exists."""
    def __init__(
        self, field_name: str, value: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"a profile with {field_name} '{value}' already exists",
            "UNIQUENESS_VIOLATION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.field_name = field_name
        self.value = value


# ─── Store Errors (500-level) ───────────────────────────────────

class StoreUnavailableError(ProfileSearchError):
    """Record store unreachable, failing or timed out."""
    def __init__(
        self,
        message: str,
        operation: str,
        timed_out: bool = False,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Record store {operation} failed: {message}",
            "STORE_UNAVAILABLE",
            ErrorCategory.TIMEOUT if timed_out else ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.detail = message
        self.operation = operation
        self.timed_out = timed_out
