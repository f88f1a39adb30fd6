"""
Error types and standardized error responses for the knowledge service.

Two layers live here:

1. Internal exceptions raised inside the knowledge engine. None of them
   escape a public entry point: the retriever turns them into empty
   results, the tool layer into ``ToolResult(success=False)``, and the
   enrichment scheduler logs and skips.
2. JSON error envelopes for the HTTP layer, carrying correlation IDs.

Usage:
    from app.shared.errors import StoreQueryError, validation_error

    raise StoreQueryError("hybrid_search", "connection reset")

    return validation_error("toolName parameter is required",
                            correlation_id=request.state.correlation_id)
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from fastapi import Request
from fastapi.responses import JSONResponse


# =============================================================================
# ENGINE EXCEPTIONS
# =============================================================================

class KnowledgeEngineError(Exception):
    """Base class for knowledge engine failures."""


class ProviderUnavailableError(KnowledgeEngineError):
    """Embedding/completion provider is unconfigured, failed, or answered garbage."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} unavailable: {reason}")


class StoreQueryError(KnowledgeEngineError):
    """A knowledge store query or RPC failed."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store operation '{operation}' failed: {reason}")


class ToolInvocationError(KnowledgeEngineError):
    """Unknown tool name or invalid tool parameters."""


class EnrichmentItemError(KnowledgeEngineError):
    """A single knowledge item could not be enriched or persisted."""

    def __init__(self, item_id: str, reason: str):
        self.item_id = item_id
        super().__init__(f"Enrichment failed for item {item_id}: {reason}")


# =============================================================================
# HTTP ERROR RESPONSES
# =============================================================================

class ErrorCode(str, Enum):
    """Standard error codes used by the HTTP layer."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors (5xx)
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """Structured error detail model."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """
    Extract correlation ID from request state.

    Args:
        request: FastAPI request object (optional)

    Returns:
        Correlation ID string or None if not available
    """
    if request is None:
        return None
    return getattr(request.state, "correlation_id", None)


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized JSON error response.

    Args:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with standardized error format
    """
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error_detail.model_dump(exclude_none=True)},
    )


def validation_error(
    message: str,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=400,
        details=details,
        correlation_id=correlation_id,
    )


def not_found_error(
    message: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 404 not found error response.

    Args:
        message: Description of what was not found
        resource_type: Type of resource (e.g., "knowledge_item", "meeting")
        resource_id: ID of the missing resource
        correlation_id: Request correlation ID

    Returns:
        JSONResponse with 404 status
    """
    details = {}
    if resource_type:
        details["resource_type"] = resource_type
    if resource_id:
        details["resource_id"] = resource_id

    return error_response(
        code=ErrorCode.NOT_FOUND,
        message=message,
        status_code=404,
        details=details if details else None,
        correlation_id=correlation_id,
    )


def database_error(
    message: str = "Database operation failed",
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 500 database error response.

    Args:
        message: User-safe error message
        operation: Type of operation that failed (e.g., "insert", "query")
        correlation_id: Request correlation ID

    Returns:
        JSONResponse with 500 status
    """
    details = {"operation": operation} if operation else None
    return error_response(
        code=ErrorCode.DATABASE_ERROR,
        message=message,
        status_code=500,
        details=details,
        correlation_id=correlation_id,
    )
