"""Quote routes. Same access rules as people."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id
from quotable.schemas.common import DeletedResponse, ErrorResponse
from quotable.schemas.image import GeneratedImageResponse
from quotable.schemas.quote import QuoteCreate, QuoteResponse, QuoteUpdate
from quotable.services.image_service import generated_image_service
from quotable.services.quote_service import quote_service

router = APIRouter(prefix="/api/quotes", tags=["Quotes"])

WRITE_ERRORS = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the owner or an admin", "model": ErrorResponse},
    404: {"description": "Quote not found", "model": ErrorResponse},
}


@router.get("", response_model=List[QuoteResponse], summary="List quotes")
async def list_quotes(
    limit: int = Query(default=50, ge=1, le=200),
    person_id: Optional[uuid.UUID] = Query(default=None, description="Only this person's quotes"),
    db: AsyncSession = Depends(get_db_session),
):
    return await quote_service.list(db, limit=limit, person_id=person_id)


@router.post(
    "",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank text", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "Person not found", "model": ErrorResponse},
    },
    summary="Create a quote",
)
async def create_quote(
    body: QuoteCreate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await quote_service.create(
        db,
        user_id,
        person_id=body.person_id,
        text=body.text,
        source=body.source,
        source_url=body.source_url,
        verified=body.verified,
    )


@router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    responses={404: {"description": "Quote not found", "model": ErrorResponse}},
    summary="Get a quote",
)
async def get_quote(quote_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await quote_service.get_or_404(db, quote_id)


@router.patch("/{quote_id}", response_model=QuoteResponse, responses=WRITE_ERRORS, summary="Update a quote")
async def update_quote(
    quote_id: uuid.UUID,
    body: QuoteUpdate,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    return await quote_service.update(db, user_id, quote_id, body.model_dump(exclude_unset=True))


@router.delete("/{quote_id}", response_model=DeletedResponse, responses=WRITE_ERRORS, summary="Delete a quote")
async def delete_quote(
    quote_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    removed = await quote_service.remove(db, user_id, quote_id)
    return DeletedResponse(id=removed)


@router.get(
    "/{quote_id}/generated-images",
    response_model=List[GeneratedImageResponse],
    summary="Quote cards rendered for a quote",
)
async def list_quote_cards(quote_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    return await generated_image_service.get_by_quote(db, quote_id)
