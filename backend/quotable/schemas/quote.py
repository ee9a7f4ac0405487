"""Pydantic schemas for quotes."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class QuoteCreate(BaseModel):
    person_id: uuid.UUID
    text: str
    source: Optional[str] = None
    source_url: Optional[str] = None
    verified: bool = False


class QuoteUpdate(BaseModel):
    text: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    verified: Optional[bool] = None


class QuoteResponse(BaseModel):
    id: uuid.UUID
    person_id: uuid.UUID
    text: str
    source: Optional[str] = None
    source_url: Optional[str] = None
    verified: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
