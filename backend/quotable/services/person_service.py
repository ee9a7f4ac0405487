"""
So Quotable Backend — People Service
=====================================

What:  Validate-then-persist operations for the `people` table.
Who:   Called by routes/people.py; `get_or_404` is also used by the quote,
       image and upload services to check the referenced person exists.

Access rules:
    reads         public
    create        any signed-in user; becomes the owner (created_by)
    update/remove owner or admin (see auth_guard.require_owner_or_admin)
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import utcnow
from quotable.exceptions import NotFoundError, ValidationError
from quotable.models.person import Person
from quotable.services.auth_guard import require_auth, require_owner_or_admin

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class PersonService:

    async def list(self, db: AsyncSession, limit: int = DEFAULT_LIST_LIMIT) -> List[Person]:
        result = await db.execute(select(Person).order_by(Person.created_at).limit(limit))
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, person_id: uuid.UUID) -> Optional[Person]:
        return await db.get(Person, person_id)

    async def get_or_404(self, db: AsyncSession, person_id: uuid.UUID) -> Person:
        person = await self.get(db, person_id)
        if person is None:
            raise NotFoundError(resource="Person", resource_id=str(person_id))
        return person

    async def get_by_slug(self, db: AsyncSession, slug: str) -> Optional[Person]:
        result = await db.execute(select(Person).where(Person.slug == slug).limit(1))
        return result.scalars().first()

    async def create(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        name: str,
        slug: str,
        bio: Optional[str] = None,
        birth_date: Optional[str] = None,
        death_date: Optional[str] = None,
    ) -> Person:
        owner_id = require_auth(user_id)
        if not (name or "").strip():
            raise ValidationError(message="Name is required and cannot be empty", field="name")
        if not (slug or "").strip():
            raise ValidationError(message="Slug is required and cannot be empty", field="slug")

        now = utcnow()
        person = Person(
            name=name.strip(),
            slug=slug.strip(),
            bio=bio,
            birth_date=birth_date,
            death_date=death_date,
            created_by=owner_id,
            created_at=now,
            updated_at=now,
        )
        db.add(person)
        await db.flush()
        logger.info("Person %s created by %s", person.id, owner_id)
        return person

    async def update(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        person_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Person:
        """
        Applies a partial update. `changes` holds only the fields the caller
        sent; name and slug are trimmed and may not be blank.
        """
        person = await self.get_or_404(db, person_id)
        await require_owner_or_admin(db, user_id, person.created_by)

        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError(message="Name cannot be empty", field="name")
        if "slug" in changes and not (changes["slug"] or "").strip():
            raise ValidationError(message="Slug cannot be empty", field="slug")

        for field in ("name", "slug"):
            if field in changes:
                setattr(person, field, changes[field].strip())
        for field in ("bio", "birth_date", "death_date"):
            if field in changes:
                setattr(person, field, changes[field])
        person.updated_at = utcnow()
        await db.flush()
        return person

    async def remove(
        self, db: AsyncSession, user_id: Optional[uuid.UUID], person_id: uuid.UUID
    ) -> uuid.UUID:
        person = await self.get_or_404(db, person_id)
        await require_owner_or_admin(db, user_id, person.created_by)
        await db.delete(person)
        await db.flush()
        logger.info("Person %s removed", person_id)
        return person_id


person_service = PersonService()
