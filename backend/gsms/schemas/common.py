"""
Common API Response Schemas

Shared base model for the camelCase JSON contract and standardized
error/message responses.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for request/response bodies.

    Fields are declared in snake_case and exchanged as camelCase
    (po_no <-> poNo). Either spelling is accepted on input.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400)
        - INVALID_STATE: Operation not allowed in the current status (400)
        - INSUFFICIENT_STOCK: Not enough raw material stock (400)
        - CONFLICT / DUPLICATE_ERROR: Duplicate PO, item code or style (400)
        - NOT_FOUND: Resource not found (404)
        - CONCURRENCY_ERROR: Concurrent modification detected (409)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)

    Example:
        {
            "error": "NOT_FOUND",
            "message": "Order with ID 123 not found",
            "details": {
                "resource": "Order",
                "resource_id": "123"
            },
            "timestamp": "2025-12-23T10:30:00Z"
        }
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context for debugging"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )


class MessageResponse(BaseModel):
    """
    Simple message response for operations that don't return data.
    """
    message: str = Field(..., description="Operation result message")


class StatusResponse(BaseModel):
    """
    Status response for health checks and similar endpoints.
    """
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="Status check timestamp (UTC)"
    )
