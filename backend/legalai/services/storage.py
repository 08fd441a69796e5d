"""
Avatar Storage

Local-directory object store for profile pictures. Objects are keyed
`<user_id>/<random>.<ext>` and exposed through the static files mount at
settings.avatar_public_base_url.
"""
import logging
import secrets
from pathlib import Path
from typing import Optional

from legalai.config import settings
from legalai.core.errors import StorageError, ValidationError

logger = logging.getLogger("uvicorn.error")

EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


class AvatarStorage:
    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None,
                 max_bytes: Optional[int] = None):
        self.root = Path(root or settings.avatar_storage_dir).resolve()
        self.public_base_url = (public_base_url or settings.avatar_public_base_url).rstrip("/")
        self.max_bytes = max_bytes or settings.avatar_max_bytes

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Inverse of public_url: the last two path segments (<user_id>/<file>)."""
        if not url:
            return None
        parts = url.rstrip("/").split("/")
        if len(parts) < 2:
            return None
        return "/".join(parts[-2:])

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise ValidationError("Invalid object key", code="INVALID_IMAGE")
        return path

    def delete(self, key: str) -> None:
        """Best-effort delete; failures are logged, never raised."""
        try:
            self._path(key).unlink(missing_ok=True)
        except (OSError, ValidationError) as e:
            logger.warning("[storage] could not delete %s: %s", key, e)

    def validate(self, data: bytes, content_type: Optional[str]) -> str:
        """Return the file extension for an acceptable image, else raise INVALID_IMAGE."""
        ext = EXTENSIONS.get((content_type or "").lower())
        if not ext:
            raise ValidationError("Only PNG, JPEG, GIF or WEBP images are accepted", code="INVALID_IMAGE")
        if not data or len(data) > self.max_bytes:
            raise ValidationError(f"Image must be between 1 byte and {self.max_bytes} bytes", code="INVALID_IMAGE")
        return ext

    def put(self, user_id: str, data: bytes, content_type: Optional[str]) -> str:
        """
        Store an image for `user_id` and return its public URL.

        Raises:
            ValidationError(INVALID_IMAGE): wrong content type, empty or too large
            StorageError: write failure
        """
        ext = self.validate(data, content_type)
        key = f"{user_id}/{secrets.token_hex(8)}.{ext}"
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.exception("[storage] write failed for %s", key)
            raise StorageError("Could not store image") from e
        return self.public_url(key)

    def replace(self, user_id: str, previous_url: Optional[str], data: bytes, content_type: Optional[str]) -> str:
        """Delete the previous object (best-effort), then write the new one."""
        self.validate(data, content_type)
        previous_key = self.key_from_url(previous_url) if previous_url else None
        if previous_key:
            self.delete(previous_key)
        return self.put(user_id, data, content_type)


avatar_storage = AvatarStorage()
