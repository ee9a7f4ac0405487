"""
So Quotable Backend — Image Metadata Services
==============================================

What:  Persistence for Cloudinary-hosted images.
         ImageService           base photos of a person (permanent)
         GeneratedImageService  rendered quote cards (expiring)
Who:   Routes for direct metadata writes, and CloudinaryService after a
       successful upload.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import utcnow
from quotable.exceptions import NotFoundError, ValidationError
from quotable.models.image import GeneratedImage, Image
from quotable.services.auth_guard import require_auth, require_owner_or_admin
from quotable.services.person_service import person_service
from quotable.services.quote_service import quote_service

logger = logging.getLogger(__name__)


class ImageService:

    async def get(self, db: AsyncSession, image_id: uuid.UUID) -> Optional[Image]:
        return await db.get(Image, image_id)

    async def get_or_404(self, db: AsyncSession, image_id: uuid.UUID) -> Image:
        image = await self.get(db, image_id)
        if image is None:
            raise NotFoundError(resource="Image", resource_id=str(image_id))
        return image

    async def get_by_person(self, db: AsyncSession, person_id: uuid.UUID) -> List[Image]:
        result = await db.execute(
            select(Image).where(Image.person_id == person_id).order_by(Image.created_at)
        )
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        person_id: uuid.UUID,
        cloudinary_id: str,
        url: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        source: Optional[str] = None,
        license: Optional[str] = None,
    ) -> Image:
        owner_id = require_auth(user_id)
        if not (cloudinary_id or "").strip():
            raise ValidationError(
                message="Cloudinary ID is required and cannot be empty", field="cloudinary_id"
            )
        if not (url or "").strip():
            raise ValidationError(message="Image URL is required and cannot be empty", field="url")
        await person_service.get_or_404(db, person_id)

        image = Image(
            person_id=person_id,
            cloudinary_id=cloudinary_id.strip(),
            url=url.strip(),
            width=width,
            height=height,
            source=source,
            license=license,
            created_by=owner_id,
            created_at=utcnow(),
        )
        db.add(image)
        await db.flush()
        return image

    async def remove(
        self, db: AsyncSession, user_id: Optional[uuid.UUID], image_id: uuid.UUID
    ) -> uuid.UUID:
        image = await self.get_or_404(db, image_id)
        await require_owner_or_admin(db, user_id, image.created_by)
        await db.delete(image)
        await db.flush()
        return image_id


class GeneratedImageService:

    async def get_or_404(self, db: AsyncSession, generated_id: uuid.UUID) -> GeneratedImage:
        generated = await db.get(GeneratedImage, generated_id)
        if generated is None:
            raise NotFoundError(resource="Generated image", resource_id=str(generated_id))
        return generated

    async def get_by_quote(self, db: AsyncSession, quote_id: uuid.UUID) -> List[GeneratedImage]:
        result = await db.execute(
            select(GeneratedImage)
            .where(GeneratedImage.quote_id == quote_id)
            .order_by(GeneratedImage.created_at)
        )
        return list(result.scalars().all())

    async def get_expiring_soon(self, db: AsyncSession, days: int = 7) -> List[GeneratedImage]:
        """Cards whose expiry falls within [now, now + days)."""
        now = utcnow()
        result = await db.execute(
            select(GeneratedImage)
            .where(
                GeneratedImage.expires_at >= now,
                GeneratedImage.expires_at < now + timedelta(days=days),
            )
            .order_by(GeneratedImage.expires_at)
        )
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        quote_id: uuid.UUID,
        image_id: uuid.UUID,
        cloudinary_id: str,
        url: str,
        transformation: str,
        expires_at: Optional[datetime] = None,
    ) -> GeneratedImage:
        owner_id = require_auth(user_id)
        if not (cloudinary_id or "").strip():
            raise ValidationError(
                message="Cloudinary ID is required and cannot be empty", field="cloudinary_id"
            )
        if not (url or "").strip():
            raise ValidationError(message="Image URL is required and cannot be empty", field="url")
        if not (transformation or "").strip():
            raise ValidationError(
                message="Transformation is required and cannot be empty", field="transformation"
            )
        await quote_service.get_or_404(db, quote_id)
        await image_service.get_or_404(db, image_id)

        generated = GeneratedImage(
            quote_id=quote_id,
            image_id=image_id,
            cloudinary_id=cloudinary_id.strip(),
            url=url.strip(),
            transformation=transformation.strip(),
            expires_at=expires_at,
            created_by=owner_id,
            created_at=utcnow(),
        )
        db.add(generated)
        await db.flush()
        logger.info("Generated image %s stored for quote %s", generated.id, quote_id)
        return generated

    async def remove(
        self, db: AsyncSession, user_id: Optional[uuid.UUID], generated_id: uuid.UUID
    ) -> uuid.UUID:
        generated = await self.get_or_404(db, generated_id)
        await require_owner_or_admin(db, user_id, generated.created_by)
        await db.delete(generated)
        await db.flush()
        return generated_id


image_service = ImageService()
generated_image_service = GeneratedImageService()
