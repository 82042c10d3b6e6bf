# app/core/storage.py
import logging
import uuid
from io import BytesIO
from typing import Optional, Tuple

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image

from app.core.config import settings
from app.core.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Pillow format -> (content type, key extension)
IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "WEBP": ("image/webp", "webp"),
}


class ImageStorage:
    """Uploads images to an S3-compatible bucket and returns their public URL."""

    def __init__(self, client=None, bucket_name: Optional[str] = None, public_base: Optional[str] = None):
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
            region_name=settings.S3_REGION,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME
        self.public_base = (public_base or settings.S3_PUBLIC_BASE or "").rstrip("/")

    def _validate_image(self, data: bytes) -> Tuple[str, str]:
        """Decode the bytes and return (content type, extension) of the image."""
        if not data:
            raise ValidationError("Image file is empty")
        if len(data) > settings.IMAGE_MAX_SIZE:
            raise ValidationError(
                f"Image too large. Maximum {settings.IMAGE_MAX_SIZE / 1024 / 1024:.1f} MB"
            )

        try:
            with Image.open(BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except Exception as e:
            raise ValidationError(f"Invalid image: {e}") from e

        if image_format not in IMAGE_FORMATS:
            raise ValidationError(f"Unsupported image format: {image_format}")
        return IMAGE_FORMATS[image_format]

    def url_for(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{key}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    def upload_image(self, data: bytes, filename: str) -> str:
        content_type, ext = self._validate_image(data)

        key = f"images/{uuid.uuid4().hex}.{ext}"
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Image upload failed for %s: %s", filename, e)
            raise StorageError("Image upload failed") from e

        url = self.url_for(key)
        logger.info("Uploaded image %s to %s", filename, url)
        return url


_storage: Optional[ImageStorage] = None


def get_storage() -> ImageStorage:
    global _storage
    if _storage is None:
        _storage = ImageStorage()
    return _storage
