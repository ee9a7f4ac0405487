"""Pydantic schemas for people."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PersonCreate(BaseModel):
    # Blank values are rejected by the service with a specific message
    name: str
    slug: str
    bio: Optional[str] = None
    birth_date: Optional[str] = Field(default=None, max_length=64)
    death_date: Optional[str] = Field(default=None, max_length=64)


class PersonUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = None
    slug: Optional[str] = None
    bio: Optional[str] = None
    birth_date: Optional[str] = Field(default=None, max_length=64)
    death_date: Optional[str] = Field(default=None, max_length=64)


class PersonResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    bio: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
