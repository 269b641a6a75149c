import logging
from typing import Optional, Tuple

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 5 * 1024 * 1024


class CloudinaryService:
    def __init__(self):
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )

    def upload_mockup_image(
        self, file_data: bytes, order_id: str, product_id: str
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Upload a vendor mockup preview for one product of an order.

        Returns:
            Tuple of (success, secure url, error message)
        """
        try:
            result = cloudinary.uploader.upload(
                file_data,
                folder=f"mockups/{order_id}",
                public_id=product_id,
                overwrite=False,
                unique_filename=True,
                resource_type="image",
                quality="auto",
                fetch_format="auto",
            )
            return True, result.get("secure_url"), None
        except CloudinaryError as e:
            logger.error("Mockup upload failed for order %s: %s", order_id, e)
            return False, None, str(e)


# Global instance
cloudinary_service = CloudinaryService()
