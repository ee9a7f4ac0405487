"""
So Quotable Backend — People Routes
====================================

Reads are public. Writes need a signed-in user; update and delete are
limited to the creator or an admin.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.exceptions import NotFoundError
from quotable.routes.deps import get_current_user_id
from quotable.schemas.common import DeletedResponse, ErrorResponse
from quotable.schemas.image import ImageResponse
from quotable.schemas.person import PersonCreate, PersonResponse, PersonUpdate
from quotable.schemas.quote import QuoteResponse
from quotable.services.image_service import image_service
from quotable.services.person_service import person_service
from quotable.services.quote_service import quote_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/people", tags=["People"])

WRITE_ERRORS = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the owner or an admin", "model": ErrorResponse},
    404: {"description": "Person not found", "model": ErrorResponse},
}


@router.get("", response_model=List[PersonResponse], summary="List people")
async def list_people(
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db_session),
):
    return await person_service.list(db, limit=limit)


@router.post(
    "",
    response_model=PersonResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank name or slug", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Create a person",
)
async def create_person(
    body: PersonCreate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await person_service.create(
        db,
        user_id,
        name=body.name,
        slug=body.slug,
        bio=body.bio,
        birth_date=body.birth_date,
        death_date=body.death_date,
    )


@router.get(
    "/by-slug/{slug}",
    response_model=PersonResponse,
    responses={404: {"description": "No person with this slug", "model": ErrorResponse}},
    summary="Look up a person by slug",
)
async def get_person_by_slug(slug: str, db: AsyncSession = Depends(get_db_session)):
    person = await person_service.get_by_slug(db, slug)
    if person is None:
        raise NotFoundError(resource="Person", resource_id=slug)
    return person


@router.get(
    "/{person_id}",
    response_model=PersonResponse,
    responses={404: {"description": "Person not found", "model": ErrorResponse}},
    summary="Get a person",
)
async def get_person(person_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await person_service.get_or_404(db, person_id)


@router.patch(
    "/{person_id}",
    response_model=PersonResponse,
    responses=WRITE_ERRORS,
    summary="Update a person",
)
async def update_person(
    person_id: uuid.UUID,
    body: PersonUpdate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await person_service.update(
        db, user_id, person_id, body.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{person_id}",
    response_model=DeletedResponse,
    responses=WRITE_ERRORS,
    summary="Delete a person with their quotes and images",
)
async def delete_person(
    person_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    removed = await person_service.remove(db, user_id, person_id)
    return DeletedResponse(id=removed)


@router.get(
    "/{person_id}/quotes",
    response_model=List[QuoteResponse],
    summary="Quotes attributed to a person",
)
async def list_person_quotes(person_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await quote_service.get_by_person(db, person_id)


@router.get(
    "/{person_id}/images",
    response_model=List[ImageResponse],
    summary="Base images of a person",
)
async def list_person_images(person_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await image_service.get_by_person(db, person_id)
