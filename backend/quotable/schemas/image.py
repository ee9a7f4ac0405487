"""
So Quotable Backend — Image Schemas
====================================

Base images, generated quote cards, the Cloudinary upload request, and the
quote-card URL builder.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

UploadPreset = Literal["base-images", "generated-images"]


class ImageCreate(BaseModel):
    person_id: uuid.UUID
    cloudinary_id: str
    url: str
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    source: Optional[str] = None
    license: Optional[str] = None


class ImageResponse(BaseModel):
    id: uuid.UUID
    person_id: uuid.UUID
    cloudinary_id: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    source: Optional[str] = None
    license: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class GeneratedImageCreate(BaseModel):
    quote_id: uuid.UUID
    image_id: uuid.UUID
    cloudinary_id: str
    url: str
    transformation: str
    expires_at: Optional[datetime] = None


class GeneratedImageResponse(BaseModel):
    id: uuid.UUID
    quote_id: uuid.UUID
    image_id: uuid.UUID
    cloudinary_id: str
    url: str
    transformation: str
    expires_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UploadRequest(BaseModel):
    """
    Upload to Cloudinary and record the result.

    base-images       requires person_id; stores an Image
    generated-images  requires quote_id, image_id and transformation;
                      stores a GeneratedImage expiring after 30 days
    """
    file: str = Field(description="Base64 data URI or public image URL")
    preset: UploadPreset
    person_id: Optional[uuid.UUID] = None
    quote_id: Optional[uuid.UUID] = None
    image_id: Optional[uuid.UUID] = None
    transformation: Optional[str] = None
    source: Optional[str] = None
    license: Optional[str] = None


class UploadResponse(BaseModel):
    cloudinary_id: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    expires_at: Optional[datetime] = None


class QuoteCardRequest(BaseModel):
    """Options for composing a quote card URL over a base image."""
    cloudinary_id: str
    text: str
    width: int = Field(default=1200, gt=0)
    height: int = Field(default=630, gt=0)
    crop: str = "fill"
    overlay_opacity: Optional[int] = Field(default=50, ge=0, le=100)
    overlay_color: str = "black"
    font_family: str = "Arial"
    font_size: int = Field(default=48, gt=0)
    font_weight: Optional[str] = None
    color: Optional[str] = "ffffff"
    gravity: Optional[str] = "center"
    y_offset: Optional[int] = None
    x_offset: Optional[int] = None
    max_width: Optional[int] = Field(default=1000, gt=0)
    format: str = "auto"
    quality: Union[int, Literal["auto"]] = "auto"


class TransformationUrlResponse(BaseModel):
    url: str
    transformation: str = Field(description="Slash-joined transformation chain")
