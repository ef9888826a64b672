# courier_core/shared/services/photo_storage.py
import cloudinary
import cloudinary.uploader
from fastapi import UploadFile
from typing import Optional
from datetime import datetime
import logging
import re
import uuid

from courier_core.config.settings import settings
from courier_core.core.exceptions import StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

class DeliveryPhotoStorage:
    """Uploads proof-of-delivery photos and returns an opaque reference (the secure URL)"""

    def __init__(self):
        if not all([settings.cloudinary_cloud_name, settings.cloudinary_api_key, settings.cloudinary_api_secret]):
            logger.warning("⚠️ Cloudinary is not configured - delivery photo uploads are disabled")
            self.configured = False
            return

        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True
        )
        self.configured = True

    def validate_image(self, content_type: Optional[str], size: Optional[int]) -> None:
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError("The delivery photo must be an image", {"content_type": content_type})

        if content_type not in settings.allowed_image_formats:
            raise ValidationError(
                f"Unsupported image format '{content_type}'",
                {"allowed": sorted(settings.allowed_image_formats)}
            )

        if size is not None and size > settings.max_image_size:
            raise ValidationError(
                f"The delivery photo must not exceed {settings.max_image_size // (1024 * 1024)}MB",
                {"size": size}
            )

    async def upload_delivery_photo(self, image_file: UploadFile, order_id: str, driver_id: str) -> str:
        """Upload the photo for ``order_id`` and return its secure URL"""
        if not self.configured:
            raise StorageUnavailable("Photo storage is not configured")

        self.validate_image(image_file.content_type, image_file.size)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        public_id = f"{self._sanitize(order_id)}_{timestamp}_{str(uuid.uuid4())[:8]}"

        await image_file.seek(0)
        file_content = await image_file.read()

        logger.info(f"📤 Uploading delivery photo {public_id}")

        try:
            result = cloudinary.uploader.upload(
                file_content,
                public_id=public_id,
                folder=settings.cloudinary_folder,
                transformation=[
                    {"width": 1280, "height": 1280, "crop": "limit", "quality": "auto:good"}
                ],
                tags=["delivery_proof", f"order_{order_id}", f"driver_{driver_id}"],
                context={"order_id": order_id, "driver_id": driver_id},
                resource_type="image",
                overwrite=False
            )
        except Exception as e:
            logger.error(f"❌ Delivery photo upload failed: {e}")
            raise StorageUnavailable("Delivery photo upload failed", {"error": str(e)})

        if "secure_url" not in result:
            raise StorageUnavailable("Photo storage returned no URL")

        logger.info(f"✅ Delivery photo stored: {result['secure_url']}")
        return result["secure_url"]

    def _sanitize(self, value: str) -> str:
        sanitized = re.sub(r'[^a-zA-Z0-9_-]', '_', value)[:50]
        return sanitized or "order"
