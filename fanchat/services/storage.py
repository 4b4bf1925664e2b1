"""
Object storage for profile pictures
"""

import logging
import mimetypes
import os
import time
from typing import Optional

from fanchat.core.config import settings

logger = logging.getLogger(__name__)


def profile_picture_key(user_id: str, content_type: str) -> str:
    """
    One object per user; a new upload replaces the old one

    The extension follows the content type so the media mount serves the
    picture with the right Content-Type.
    """
    extension = mimetypes.guess_extension(content_type or "") or ""
    return f"profile-pictures/{user_id}{extension}"


class ObjectStore:
    """Minimal object store contract"""

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key and return its public URL"""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove the object; raises FileNotFoundError when it does not exist"""
        raise NotImplementedError

    def key_for_url(self, url: str) -> Optional[str]:
        """Key of an object previously returned by put, or None for foreign URLs"""
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    """
    Filesystem-backed store under ``settings.storage_path``, served by the
    ``/media`` static mount
    """

    def __init__(self, root: Optional[str] = None, url_prefix: Optional[str] = None):
        self.root = root or settings.storage_path
        self.url_prefix = (url_prefix or settings.media_url_prefix).rstrip("/")

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(os.path.abspath(self.root) + os.sep):
            raise ValueError(f"Invalid object key: {key}")
        return path

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        logger.info(f"Stored object {key} ({len(data)} bytes, {content_type})")
        # Version parameter so clients do not keep showing a replaced picture
        return f"{self.url_prefix}/{key}?v={int(time.time() * 1000)}"

    def delete(self, key: str) -> None:
        os.remove(self._path(key))
        logger.info(f"Deleted object {key}")

    def key_for_url(self, url: str) -> Optional[str]:
        path = url.split("?", 1)[0]
        if not path.startswith(self.url_prefix + "/"):
            return None
        return path[len(self.url_prefix) + 1:] or None


def get_object_store() -> ObjectStore:
    """Dependency returning the configured object store"""
    return LocalObjectStore()
