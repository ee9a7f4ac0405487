"""
So Quotable Backend — Shared Response Schemas
==============================================

What:  Envelopes reused across routers: the error body, plain messages,
       tagged token-redemption results, and the health payload.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every QuotableError.

    Example:
        {
            "error": "not_authorized",
            "message": "Not authorized to modify this resource",
            "details": null,
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TokenResult(BaseModel):
    """
    Tagged outcome of redeeming a single-use token.

    Redemption never raises for business outcomes. Callers branch on
    `success` and show `message` or `error`:
        {"success": false, "error": "Verification token has expired"}
        {"success": true,  "message": "Email already verified"}
    """
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    user_id: Optional[uuid.UUID] = None

    @classmethod
    def ok(cls, message: str, user_id: Optional[uuid.UUID] = None) -> "TokenResult":
        return cls(success=True, message=message, user_id=user_id)

    @classmethod
    def fail(cls, error: str) -> "TokenResult":
        return cls(success=False, error=error)


class DatabaseStatus(BaseModel):
    connected: bool
    people_count: Optional[int] = None


class EnvironmentInfo(BaseModel):
    deployment: str


class HealthResponse(BaseModel):
    status: str = Field(description="ok when the database answers, otherwise degraded")
    timestamp: datetime
    version: str
    database: DatabaseStatus
    environment: EnvironmentInfo


class DeletedResponse(BaseModel):
    id: uuid.UUID
    deleted: bool = True
