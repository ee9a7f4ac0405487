"""Quote CRUD. Quotes reference a Person; writes follow the same guard as people."""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import utcnow
from quotable.exceptions import NotFoundError, ValidationError
from quotable.models.quote import Quote
from quotable.services.auth_guard import require_auth, require_owner_or_admin
from quotable.services.person_service import person_service

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class QuoteService:

    async def list(
        self,
        db: AsyncSession,
        limit: int = DEFAULT_LIST_LIMIT,
        person_id: Optional[uuid.UUID] = None,
    ) -> List[Quote]:
        query = select(Quote)
        if person_id is not None:
            query = query.where(Quote.person_id == person_id)
        result = await db.execute(query.order_by(Quote.created_at).limit(limit))
        return list(result.scalars().all())

    async def get_by_person(self, db: AsyncSession, person_id: uuid.UUID) -> List[Quote]:
        result = await db.execute(
            select(Quote).where(Quote.person_id == person_id).order_by(Quote.created_at)
        )
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, quote_id: uuid.UUID) -> Optional[Quote]:
        return await db.get(Quote, quote_id)

    async def get_or_404(self, db: AsyncSession, quote_id: uuid.UUID) -> Quote:
        quote = await self.get(db, quote_id)
        if quote is None:
            raise NotFoundError(resource="Quote", resource_id=str(quote_id))
        return quote

    async def create(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        person_id: uuid.UUID,
        text: str,
        source: Optional[str] = None,
        source_url: Optional[str] = None,
        verified: bool = False,
    ) -> Quote:
        owner_id = require_auth(user_id)
        if not (text or "").strip():
            raise ValidationError(message="Quote text is required and cannot be empty", field="text")
        await person_service.get_or_404(db, person_id)

        now = utcnow()
        quote = Quote(
            person_id=person_id,
            text=text.strip(),
            source=source,
            source_url=source_url,
            verified=verified,
            created_by=owner_id,
            created_at=now,
            updated_at=now,
        )
        db.add(quote)
        await db.flush()
        logger.info("Quote %s created for person %s", quote.id, person_id)
        return quote

    async def update(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        quote_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Quote:
        quote = await self.get_or_404(db, quote_id)
        await require_owner_or_admin(db, user_id, quote.created_by)

        if "text" in changes:
            if not (changes["text"] or "").strip():
                raise ValidationError(message="Quote text cannot be empty", field="text")
            quote.text = changes["text"].strip()
        for field in ("source", "source_url"):
            if field in changes:
                setattr(quote, field, changes[field])
        if changes.get("verified") is not None:
            quote.verified = changes["verified"]
        quote.updated_at = utcnow()
        await db.flush()
        return quote

    async def remove(
        self, db: AsyncSession, user_id: Optional[uuid.UUID], quote_id: uuid.UUID
    ) -> uuid.UUID:
        quote = await self.get_or_404(db, quote_id)
        await require_owner_or_admin(db, user_id, quote.created_by)
        await db.delete(quote)
        await db.flush()
        return quote_id


quote_service = QuoteService()
