"""Error Hierarchy — every way an indicator request, cron task or provider call can fail.

Invariants:
    - Every error has a code, a category and a severity, and maps to one HTTP status
    - to_response() builds the {"error": {...}} envelope; its context block lists only the
      fields that are set (data source, retry delay, offending parameter)
    - Provider failures name the data source in the message ("INDEC error: HTTP 404") so a
      cron result reads on its own
    - Messages shown to clients stay in Spanish where the dashboard shows them verbatim

Design Decisions:
    - One ArgenStatsError base caught by one FastAPI handler; cron tasks catch the same base
      and report the task as FAILED
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
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    SOURCE_FORMAT = "source_format"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str | None = None
    parameter: str | None = None
    hint: str | None = None
    retry_after_ms: int | None = None

    def public_fields(self) -> dict[str, Any]:
        fields = {
            "source": self.source,
            "retry_after_ms": self.retry_after_ms,
            "parameter": self.parameter,
        }
        return {k: v for k, v in fields.items() if v is not None}


class ArgenStatsError(Exception):
    """Base exception for all ArgenStats errors."""

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
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.context.hint:
            body["hint"] = self.context.hint
        public = self.context.public_fields()
        if public:
            body["context"] = public
        return {"error": body}


# ─── Request Errors (400-level) ─────────────────────────────────

class InvalidParameterError(ArgenStatsError):
    """Query or body parameter failed validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.parameter = field
        super().__init__(
            message, "INVALID_PARAMETER", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class UnauthorizedError(ArgenStatsError):
    """Cron or admin secret missing or wrong."""
    def __init__(self, message: str = "No autorizado", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ApiKeyError(ArgenStatsError):
    """External request without a usable API key."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.hint = ctx.hint or (
            "Access token required for external API requests. "
            "Get yours at https://argenstats.com/profile"
        )
        super().__init__(
            message, "API_KEY_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, ctx, 401,
        )


class ResourceNotFoundError(ArgenStatsError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class NoDataError(ArgenStatsError):
    """Query matched no rows."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NO_DATA", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ArgenStatsError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ExternalSourceError(ArgenStatsError):
    """A data provider (dolarapi, BCRA, INDEC, Google Sheets) call failed."""
    def __init__(
        self,
        message: str,
        source: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.source = source
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"{source} error: {message}",
            "EXTERNAL_SOURCE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.source = source


class SourceFormatError(ArgenStatsError):
    """A downloaded file does not have the expected layout."""
    def __init__(self, message: str, source: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.source = source
        super().__init__(
            message, "SOURCE_FORMAT_ERROR", ErrorCategory.SOURCE_FORMAT,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.source = source
