"""
Heritage Numérique Backend — Shared Response Schemas
=====================================================

What:  Schemas reused across every router: the error envelope, simple
       message/count bodies and the health report.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Uniform error envelope returned by every failing request.
    Why:   Clients parse one shape regardless of which layer rejected the call.

    Example:
        {
            "status": 404,
            "error": "not_found",
            "message": "family with ID '...' was not found",
            "path": "/api/v1/families/...",
            "timestamp": "2025-01-01T00:00:00+00:00",
            "request_id": "ab12cd34",
            "details": {"resource": "family", "resource_id": "..."}
        }
    """
    status: int = Field(description="HTTP status code")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    path: str = Field(description="Request path that produced the error")
    timestamp: datetime = Field(description="When the error occurred (UTC)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")


class MessageResponse(BaseModel):
    message: str


class CountResponse(BaseModel):
    count: int


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    translation: str = Field(description="Translation provider circuit state: closed, half_open, open")
    uptime_seconds: float = Field(description="Seconds since service started")
