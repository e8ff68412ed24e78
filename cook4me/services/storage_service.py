# cook4me/services/storage_service.py
"""
Profile picture storage on a Supabase Storage bucket.

Objects are path-addressed (`profile-pictures/<user_id>/<ms>_<filename>`)
and served through their public URL. Failures raise PersistenceError;
bad uploads raise ValidationError before anything is written.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote

from cook4me.config.settings import settings
from cook4me.config.supabase import supabase_client
from cook4me.models.user import UserProfileUpdate
from cook4me.services.base import run_blocking, unwrap
from cook4me.services.errors import PersistenceError, ValidationError
from cook4me.services.user_service import UserService

logger = logging.getLogger(__name__)

PROFILE_PICTURE_PREFIX = "profile-pictures"

_DATA_URL_RE = re.compile(r"^data:[^;,]+;base64,")
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def validate_image(size: int, content_type: Optional[str], max_bytes: Optional[int] = None) -> None:
    max_bytes = max_bytes or settings.max_upload_bytes
    if size <= 0:
        raise ValidationError("File is empty")
    if size > max_bytes:
        raise ValidationError(
            f"File size must be less than {max_bytes // (1024 * 1024)}MB", status_code=413
        )
    if not (content_type or "").startswith("image/"):
        raise ValidationError("Please select an image file", status_code=415)


def profile_picture_path(user_id: str, filename: str) -> str:
    safe_name = _UNSAFE_NAME_RE.sub("_", filename or "upload").strip("_") or "upload"
    return f"{PROFILE_PICTURE_PREFIX}/{user_id}/{int(time.time() * 1000)}_{safe_name}"


class ProfilePictureStorage:

    def __init__(
        self,
        client: Optional[Any] = None,
        bucket: Optional[str] = None,
        user_service: Optional[UserService] = None,
    ):
        self.client = client if client is not None else getattr(supabase_client, "client", None)
        self.bucket = bucket or settings.supabase_storage_bucket
        self.user_service = user_service or UserService(self.client)
        if self.client is None:
            logger.warning("ProfilePictureStorage: Supabase client not available.")

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    async def _run(self, op: str, fn: Callable, *args) -> Any:
        if self.client is None:
            raise PersistenceError("no_supabase_client")
        try:
            return await run_blocking(fn, *args)
        except Exception as exc:
            logger.exception("Storage %s failed: %s", op, exc)
            raise PersistenceError(f"storage_{op}_failed", {"exception": str(exc)}) from exc

    def path_from_url(self, url: str) -> Optional[str]:
        """Object path for one of our public URLs, or None for foreign URLs."""
        marker = f"/object/public/{self.bucket}/"
        if not url or marker not in url:
            return None
        path = url.split(marker, 1)[1].split("?", 1)[0]
        return unquote(path) or None

    async def upload_file(self, path: str, data: bytes, content_type: str) -> str:
        """Upload `data` to `path` and return its public URL."""
        logger.info("upload_file path=%s bytes=%d type=%s", path, len(data), content_type)
        await self._run(
            "upload",
            lambda: self._bucket().upload(
                path, data, file_options={"content-type": content_type}
            ),
        )
        return await self.get_file_url(path)

    async def upload_base64(self, path: str, b64: str, content_type: str) -> str:
        try:
            data = base64.b64decode(_DATA_URL_RE.sub("", b64.strip()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Invalid base64 image data") from exc
        validate_image(len(data), content_type)
        return await self.upload_file(path, data, content_type)

    async def get_file_url(self, path: str) -> str:
        url = await self._run("url", lambda: self._bucket().get_public_url(path))
        # some client versions append a bare "?" to public URLs
        return str(url).rstrip("?")

    async def delete_file(self, path: str) -> None:
        logger.info("delete_file path=%s", path)
        await self._run("delete", lambda: self._bucket().remove([path]))

    async def list_files(self, prefix: str) -> List[Dict[str, Any]]:
        items = await self._run("list", lambda: self._bucket().list(prefix))
        return list(items or [])

    async def replace_profile_picture(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
        old_url: Optional[str] = None,
    ) -> str:
        """
        Upload a new picture and point the profile at it, then drop the
        previous object. The old object is only removed once the profile no
        longer references it. Returns the new public URL.
        """
        validate_image(len(data), content_type)
        new_path = profile_picture_path(user_id, filename)
        url = await self.upload_file(new_path, data, content_type)

        try:
            unwrap(
                await self.user_service.update_user_profile(
                    user_id, UserProfileUpdate(profile_picture_url=url)
                )
            )
        except PersistenceError:
            await self._discard(new_path)
            raise

        old_path = self.path_from_url(old_url) if old_url else None
        if old_path:
            # the new picture is already live; a stale object is harmless
            await self._discard(old_path)
        return url

    async def _discard(self, path: str) -> None:
        try:
            await self.delete_file(path)
        except PersistenceError as exc:
            logger.warning("Could not delete profile picture %s: %s", path, exc)
