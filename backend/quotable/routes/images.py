"""
So Quotable Backend — Image Metadata Routes
============================================

    POST   /api/images                      record a base image
    GET    /api/images/{id}
    DELETE /api/images/{id}
    GET    /api/generated-images/expiring   cards expiring within `days`
    POST   /api/generated-images            record a quote card
    DELETE /api/generated-images/{id}

These only write metadata. Uploading the bytes goes through /api/uploads.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id
from quotable.schemas.common import DeletedResponse, ErrorResponse
from quotable.schemas.image import (
    GeneratedImageCreate,
    GeneratedImageResponse,
    ImageCreate,
    ImageResponse,
)
from quotable.services.image_service import generated_image_service, image_service

router = APIRouter(prefix="/api", tags=["Images"])

WRITE_ERRORS = {
    400: {"description": "Missing required field", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the owner or an admin", "model": ErrorResponse},
    404: {"description": "Referenced row not found", "model": ErrorResponse},
}


@router.post(
    "/images",
    response_model=ImageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
    summary="Record a base image",
)
async def create_image(
    body: ImageCreate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await image_service.create(db, user_id, **body.model_dump())


@router.get(
    "/images/{image_id}",
    response_model=ImageResponse,
    responses={404: {"description": "Image not found", "model": ErrorResponse}},
    summary="Get a base image",
)
async def get_image(image_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await image_service.get_or_404(db, image_id)


@router.delete("/images/{image_id}", response_model=DeletedResponse, responses=WRITE_ERRORS, summary="Delete a base image")
async def delete_image(
    image_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    removed = await image_service.remove(db, user_id, image_id)
    return DeletedResponse(id=removed)


@router.get(
    "/generated-images/expiring",
    response_model=List[GeneratedImageResponse],
    summary="Quote cards expiring soon",
)
async def list_expiring_cards(
    days: int = Query(default=7, ge=1, le=365),
    db: AsyncSession = Depends(get_db_session),
):
    return await generated_image_service.get_expiring_soon(db, days=days)


@router.post(
    "/generated-images",
    response_model=GeneratedImageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
    summary="Record a quote card",
)
async def create_generated_image(
    body: GeneratedImageCreate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await generated_image_service.create(db, user_id, **body.model_dump())


@router.delete(
    "/generated-images/{generated_id}",
    response_model=DeletedResponse,
    responses=WRITE_ERRORS,
    summary="Delete a quote card",
)
async def delete_generated_image(
    generated_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    removed = await generated_image_service.remove(db, user_id, generated_id)
    return DeletedResponse(id=removed)
