"""Item image storage.

Images go through Django's ``default_storage`` so the backend (local disk
in development, an object store in production) is a settings concern.
Uploads and deletions are independent of loan and stock transactions.
"""

import logging
import re
import time
from typing import Optional

from common.actions import guarded_action
from common.exceptions import StorageFailed, ValidationFailed
from common.results import ActionResult
from django.conf import settings
from django.core.files.storage import default_storage
from users.permissions import Capability

logger = logging.getLogger("logistics.catalog")

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def _image_dir() -> str:
    return getattr(settings, "ITEM_IMAGE_DIR", "item-images").strip("/")


def sanitize_filename(name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", (name or "").rsplit("/", 1)[-1])
    return cleaned or "image"


def validate_image(upload) -> None:
    if upload is None:
        raise ValidationFailed("No file uploaded", errors={"photo": ["No file uploaded"]})
    if getattr(upload, "content_type", None) not in ALLOWED_IMAGE_TYPES:
        message = "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."
        raise ValidationFailed(message, errors={"photo": [message]})
    max_bytes = getattr(settings, "ITEM_IMAGE_MAX_BYTES", DEFAULT_MAX_BYTES)
    if upload.size > max_bytes:
        message = f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
        raise ValidationFailed(message, errors={"photo": [message]})


@guarded_action(Capability.MANAGE_ITEMS, "item.image_uploaded")
def upload_item_image(actor, upload) -> dict:
    """Store an uploaded image and return ``{"url": ..., "name": ...}``."""
    validate_image(upload)
    name = f"{_image_dir()}/{int(time.time() * 1000)}-{sanitize_filename(upload.name)}"
    try:
        stored = default_storage.save(name, upload)
    except OSError as exc:
        logger.error("item_image_upload_failed", extra={"image_name": name, "error": str(exc)})
        raise StorageFailed("Failed to upload file")
    return {"url": default_storage.url(stored), "name": stored}


def storage_name_for(url: Optional[str]) -> Optional[str]:
    """Map a stored image URL back to its storage name, or None if it is not ours."""
    if not url:
        return None
    path = url.split("?", 1)[0]
    marker = f"/{_image_dir()}/"
    if marker not in path:
        return None
    return f"{_image_dir()}/{path.rsplit(marker, 1)[1]}"


def delete_item_image(url: Optional[str]) -> ActionResult:
    """Delete the file behind ``url``. A missing file or foreign URL is not an error."""
    name = storage_name_for(url)
    if name is None:
        return ActionResult.ok()
    try:
        if default_storage.exists(name):
            default_storage.delete(name)
    except OSError as exc:
        logger.warning("item_image_delete_failed", extra={"image_name": name, "error": str(exc)})
        return ActionResult.fail("Failed to delete image", code=StorageFailed.code)
    logger.info("item_image_deleted", extra={"image_name": name})
    return ActionResult.ok()
