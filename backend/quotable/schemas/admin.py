"""Pydantic schemas for admin maintenance utilities."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CleanupRequest(BaseModel):
    dry_run: bool = False
    batch_size: int = Field(default=50, ge=1, le=500)


class CleanupResult(BaseModel):
    dry_run: bool
    total_test_users: int
    users_to_delete: Optional[int] = None
    sample_emails: Optional[List[str]] = None
    deleted_users: Optional[int] = None
    deleted_accounts: Optional[int] = None
    message: str


class TableBackfill(BaseModel):
    checked: int = 0
    updated: int = 0


class BackfillResult(BaseModel):
    success: bool = True
    stats: Dict[str, TableBackfill]
    message: str


class PromoteResult(BaseModel):
    success: bool = True
    message: str
