"""
Storage - Public image URLs, avatar and listing image uploads.

Stored image references come in several historical shapes; every helper here
accepts all of them:
- full http(s) URLs
- bucket-relative keys ("<user>/listings/<file>.jpg")
- keys saved with the bucket prefix ("listing-images/<user>/...")
- public path strings ("/storage/v1/object/public/listing-images/<user>/...")
"""

import logging
import re
import uuid
from typing import Optional
from urllib.parse import urlencode

from nawartu.models import UploadFile
from nawartu.services.backend import BackendClient, BackendError
from nawartu.services.notifications import Notifier
from nawartu.utils import config
from nawartu.utils.errors import ValidationError

logger = logging.getLogger('Nawartu')

PUBLIC_PATH = "/storage/v1/object/public/"
RENDER_PATH = "/storage/v1/render/image/public/"

_URL_PATTERN = re.compile(r'^https?://', re.IGNORECASE)


def storage_key(image_path: Optional[str], bucket: str) -> Optional[str]:
    """
    Reduce any accepted image reference to its bucket-relative key.

    Returns:
        The key, or None for empty input and blob: URLs
    """
    if not image_path:
        return None
    key = image_path.strip()
    if not key or key.startswith("blob:"):
        return None

    public_idx = key.find(PUBLIC_PATH)
    if public_idx != -1:
        key = key[public_idx + len(PUBLIC_PATH):]

    bucket_prefix = f"{bucket}/"
    bucket_idx = key.find(bucket_prefix)
    if bucket_idx != -1:
        key = key[bucket_idx + len(bucket_prefix):]

    return key.lstrip("/") or None


def get_public_image_url(
    image_path: Optional[str],
    bucket: Optional[str] = None,
    base_url: Optional[str] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    quality: Optional[int] = None,
    resize: Optional[str] = None
) -> Optional[str]:
    """
    Public URL for a stored image reference.

    Full URLs are returned unchanged, which makes the function idempotent.
    Any transform option switches to the image render endpoint.

    Args:
        image_path: Any accepted image reference
        bucket: Storage bucket (None = listing images bucket)
        base_url: Project URL (None = config)
        width, height, quality: Render transform options
        resize: 'cover', 'contain' or 'fill'

    Returns:
        URL string, or None when there is nothing usable
    """
    if not image_path or not image_path.strip():
        return None
    trimmed = image_path.strip()
    if _URL_PATTERN.match(trimmed):
        return trimmed

    bucket = bucket or config.listing_bucket
    key = storage_key(trimmed, bucket)
    if key is None:
        return None

    base = (base_url or config.backend_url).rstrip("/")
    options = {
        name: value
        for name, value in (
            ("width", width), ("height", height), ("quality", quality), ("resize", resize)
        )
        if value
    }
    if not options:
        return f"{base}{PUBLIC_PATH}{bucket}/{key}"
    return f"{base}{RENDER_PATH}{bucket}/{key}?{urlencode(options)}"


class StorageService:
    """
    Validated uploads into the avatar and listing image buckets.
    """

    def __init__(self, backend: BackendClient, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or Notifier()

    def public_url(self, key: str, bucket: str) -> str:
        return get_public_image_url(key, bucket, base_url=self.backend.url)

    @staticmethod
    def _check_image(file: UploadFile, max_bytes: int) -> None:
        if not file.content_type.startswith("image/"):
            raise ValidationError("upload.invalid_file", "upload.invalid_file.title", name=file.name)
        if file.size > max_bytes:
            raise ValidationError(
                "upload.too_large", "upload.too_large.title",
                name=file.name, limit=max_bytes // (1024 * 1024),
            )

    def upload_avatar(
        self,
        user_id: str,
        file: UploadFile,
        current_avatar: Optional[str] = None
    ) -> str:
        """
        Replace a user's avatar.

        Deletes the previous avatar, upserts ``<user>/avatar.<ext>`` and points
        the profile's ``avatar_url`` at it.

        Returns:
            Public URL of the new avatar

        Raises:
            ValidationError: Not an image, or larger than the avatar limit
            BackendError: Upload or profile update failed
        """
        self._check_image(file, config.avatar_max_bytes)
        bucket = config.avatar_bucket

        old_key = storage_key(current_avatar, bucket)
        if old_key:
            try:
                self.backend.remove(bucket, [old_key])
            except BackendError as e:
                logger.warning(f"Could not delete previous avatar {old_key}: {e}")

        key = f"{user_id}/avatar.{file.extension or 'jpg'}"
        try:
            stored = self.backend.upload(bucket, key, file.data, file.content_type, upsert=True)
            url = self.public_url(stored, bucket)
            self.backend.update("profiles", {"avatar_url": url}, {"user_id": user_id})
        except BackendError as e:
            self.notifier.error("upload.failed", "upload.failed.title", name=file.name, reason=e.message)
            raise

        self.notifier.success("avatar.updated", "avatar.updated.title")
        return url

    def upload_listing_images(
        self,
        user_id: str,
        files: list[UploadFile],
        folder: str = "listings",
        existing: Optional[list[str]] = None,
        max_images: Optional[int] = None
    ) -> list[str]:
        """
        Upload listing photos.

        Files that are not images, are too large or fail to upload are skipped
        with a notification; the rest are stored under
        ``<user>/<folder>/<uuid>.<ext>``.

        Returns:
            Existing URLs followed by the newly uploaded ones

        Raises:
            ValidationError: The batch would exceed the image limit
        """
        existing = list(existing or [])
        limit = max_images or config.max_listing_images
        if len(existing) + len(files) > limit:
            raise ValidationError(
                "upload.too_many", "upload.too_many.title",
                limit=limit, remaining=max(limit - len(existing), 0),
            )

        bucket = config.listing_bucket
        uploaded: list[str] = []
        for file in files:
            try:
                self._check_image(file, config.listing_image_max_bytes)
            except ValidationError as e:
                self.notifier.error(e.key, e.title_key, **e.params)
                continue

            key = f"{user_id}/{folder}/{uuid.uuid4()}.{file.extension or 'jpg'}"
            try:
                stored = self.backend.upload(bucket, key, file.data, file.content_type)
            except BackendError as e:
                self.notifier.error(
                    "upload.failed", "upload.failed.title", name=file.name, reason=e.message
                )
                continue
            uploaded.append(self.public_url(stored, bucket))

        logger.info(f"Uploaded {len(uploaded)}/{len(files)} listing image(s) for {user_id}")
        self.notifier.success("upload.complete", "upload.complete.title", count=len(uploaded))
        return existing + uploaded

    def remove_image(self, image_url: str, bucket: Optional[str] = None) -> bool:
        """
        Delete a stored image given any accepted reference.

        Returns:
            False if no key could be derived or the delete failed
        """
        bucket = bucket or config.listing_bucket
        key = storage_key(image_url, bucket)
        if key is None or _URL_PATTERN.match(key):
            logger.warning(f"Cannot derive a storage key from {image_url}")
            return False
        try:
            self.backend.remove(bucket, [key])
        except BackendError as e:
            logger.error(f"Failed to remove image {key}: {e}")
            return False
        return True
