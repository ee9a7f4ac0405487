"""
Cloudinary upload and quote-card URL routes.

    POST /api/uploads              upload + record (base or generated preset)
    POST /api/transformations/url  compose a quote card delivery URL
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.config import settings
from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id
from quotable.schemas.common import ErrorResponse
from quotable.schemas.image import (
    QuoteCardRequest,
    TransformationUrlResponse,
    UploadRequest,
    UploadResponse,
)
from quotable.services.cloudinary_service import cloudinary_service
from quotable.services.transformations import build_quote_card

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post(
    "/uploads",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing file or preset fields", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "Referenced person, quote or image not found", "model": ErrorResponse},
        502: {"description": "Cloudinary rejected the upload", "model": ErrorResponse},
    },
    summary="Upload an image to Cloudinary",
)
async def upload_image(
    body: UploadRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UploadResponse:
    return await cloudinary_service.upload(
        db,
        user_id,
        file=body.file,
        preset=body.preset,
        person_id=body.person_id,
        quote_id=body.quote_id,
        image_id=body.image_id,
        transformation=body.transformation,
        source=body.source,
        license=body.license,
    )


@router.post(
    "/transformations/url",
    response_model=TransformationUrlResponse,
    responses={400: {"description": "Invalid transformation option", "model": ErrorResponse}},
    summary="Build a quote card URL",
    description="Pure URL composition; nothing is uploaded or stored.",
)
async def quote_card_url(body: QuoteCardRequest) -> TransformationUrlResponse:
    url, chain = build_quote_card(body, settings.cloudinary_cloud_name)
    return TransformationUrlResponse(url=url, transformation=chain)
