"""
So Quotable Backend — Cloudinary Upload Pipeline
=================================================

What:  Uploads a base64 data URI or remote URL to Cloudinary, then records
       the returned metadata.
How:   Signed upload over the REST API (httpx). Params are signed with
       SHA-1 over "k1=v1&k2=v2...<api_secret>", keys sorted.

Presets:
    base-images       folder so-quotable/people     → Image row (permanent)
    generated-images  folder so-quotable/generated  → GeneratedImage row,
                      unique filename, expires after GENERATED_IMAGE_TTL_DAYS

All preset checks (required ids, referenced rows exist) run BEFORE any bytes
are sent, so a bad request never leaves an orphaned upload behind.
"""

import hashlib
import logging
import time
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import utcnow
from quotable.config import settings
from quotable.exceptions import ImageUploadError, ValidationError
from quotable.schemas.image import UploadResponse
from quotable.services.auth_guard import require_auth
from quotable.services.image_service import generated_image_service, image_service
from quotable.services.person_service import person_service
from quotable.services.quote_service import quote_service

logger = logging.getLogger(__name__)

BASE_IMAGES = "base-images"
GENERATED_IMAGES = "generated-images"

PRESET_FOLDERS = {
    BASE_IMAGES: "so-quotable/people",
    GENERATED_IMAGES: "so-quotable/generated",
}


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryService:

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{settings.cloudinary_cloud_name}/image/upload"

    async def upload_file(self, file: str, preset: str) -> Dict[str, Any]:
        """
        Sends one signed upload and returns Cloudinary's JSON reply.

        Raises:
            ImageUploadError: missing credentials, transport failure, or a
                              non-2xx reply (Cloudinary's message is kept)
        """
        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise ImageUploadError(reason="Cloudinary credentials are not configured")

        params: Dict[str, Any] = {
            "folder": PRESET_FOLDERS[preset],
            "timestamp": int(time.time()),
            "upload_preset": preset,
        }
        if preset == GENERATED_IMAGES:
            params["unique_filename"] = "true"

        form = dict(params)
        form["file"] = file
        form["api_key"] = settings.cloudinary_api_key
        form["signature"] = sign_params(params, settings.cloudinary_api_secret)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.upload_url, data=form)
        except httpx.HTTPError as e:
            logger.error("Cloudinary upload transport error: %s", e)
            raise ImageUploadError(reason=str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            try:
                reason = response.json().get("error", {}).get("message")
            except ValueError:
                reason = None
            reason = reason or f"HTTP {response.status_code}"
            logger.error("Cloudinary rejected upload (%s): %s", response.status_code, reason)
            raise ImageUploadError(reason=reason, context={"status_code": response.status_code})

        return response.json()

    async def upload(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        file: str,
        preset: str,
        person_id: Optional[uuid.UUID] = None,
        quote_id: Optional[uuid.UUID] = None,
        image_id: Optional[uuid.UUID] = None,
        transformation: Optional[str] = None,
        source: Optional[str] = None,
        license: Optional[str] = None,
    ) -> UploadResponse:
        require_auth(user_id)
        file = (file or "").strip()
        if not file:
            raise ValidationError(message="File is required and cannot be empty", field="file")

        if preset == BASE_IMAGES:
            if person_id is None:
                raise ValidationError(
                    message="personId is required for base-images preset", field="person_id"
                )
            await person_service.get_or_404(db, person_id)
        elif preset == GENERATED_IMAGES:
            if quote_id is None or image_id is None:
                raise ValidationError(
                    message="quoteId and imageId are required for generated-images preset"
                )
            if not transformation:
                raise ValidationError(
                    message="transformation is required for generated-images preset",
                    field="transformation",
                )
            await quote_service.get_or_404(db, quote_id)
            await image_service.get_or_404(db, image_id)
        else:
            raise ValidationError(message=f"Unknown upload preset '{preset}'", field="preset")

        uploaded = await self.upload_file(file, preset)
        cloudinary_id = uploaded.get("public_id")
        url = uploaded.get("secure_url")
        width = uploaded.get("width")
        height = uploaded.get("height")
        logger.info("Uploaded %s to Cloudinary as %s", preset, cloudinary_id)

        if preset == BASE_IMAGES:
            await image_service.create(
                db,
                user_id,
                person_id=person_id,
                cloudinary_id=cloudinary_id,
                url=url,
                width=width,
                height=height,
                source=source,
                license=license,
            )
            return UploadResponse(cloudinary_id=cloudinary_id, url=url, width=width, height=height)

        expires_at = utcnow() + timedelta(days=settings.generated_image_ttl_days)
        await generated_image_service.create(
            db,
            user_id,
            quote_id=quote_id,
            image_id=image_id,
            cloudinary_id=cloudinary_id,
            url=url,
            transformation=transformation,
            expires_at=expires_at,
        )
        return UploadResponse(
            cloudinary_id=cloudinary_id,
            url=url,
            width=width,
            height=height,
            expires_at=expires_at,
        )


cloudinary_service = CloudinaryService()
