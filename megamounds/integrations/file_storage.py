"""
File storage gateway for task photos.

Blobs are written under ``STORAGE_ROOT`` keyed by a relative path and served
from ``PUBLIC_STORAGE_URL``. Keys never escape the root directory.

Testability: pass ``root``/``public_url`` explicitly (e.g. a pytest
``tmp_path``) instead of reading app config.
"""

from __future__ import annotations

import logging
import os

from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a blob cannot be written."""


class LocalFileStorage:
    """Upload bytes under a key and hand back a public URL."""

    def __init__(self, root: str, public_url: str) -> None:
        self.root = os.path.abspath(root)
        self.public_url = public_url.rstrip("/")

    @classmethod
    def from_app(cls) -> "LocalFileStorage":
        return cls(
            current_app.config["STORAGE_ROOT"],
            current_app.config["PUBLIC_STORAGE_URL"],
        )

    @staticmethod
    def build_key(*parts) -> str:
        """Join parts into a safe relative key ("tasks/12/photo.jpg")."""
        cleaned = [secure_filename(str(p)) for p in parts]
        cleaned = [p for p in cleaned if p]
        if not cleaned:
            raise StorageError("Empty storage key")
        return "/".join(cleaned)

    def _path_for(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(self.root + os.sep):
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def upload(self, key: str, data: bytes) -> str:
        """Write ``data`` under ``key``; returns the key."""
        path = self._path_for(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as e:
            logger.error("Storage upload failed for %s: %s", key, e)
            raise StorageError(str(e)) from e
        logger.debug("Stored %d bytes at %s", len(data), key)
        return key

    def public_url_for(self, key: str) -> str:
        return f"{self.public_url}/{key}"
