# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local filesystem storage for tenant branding assets.

Files are written to ``{directory}/tenants/{tenant_id}/{asset}-{random}{ext}``
and served under ``{public_url}/tenants/...``.

Example:
    >>> storage = BrandingStorage(settings.upload)
    >>> url = await storage.save(5, "logo-light", "logo.png", "image/png", data)
    >>> url
    '/uploads/tenants/5/logo-light-3f2a9c1e.png'
"""

import asyncio
import logging
import secrets
from pathlib import Path, PurePath

from src.core.config.settings import UploadSettings
from src.core.errors import BadRequestError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/svg+xml": ".svg",
    "image/webp": ".webp",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
}


class InvalidUploadError(BadRequestError):
    """Raised when an uploaded file is rejected."""

    default_code = "INVALID_FILE"
    default_message = "Invalid file upload"


class BrandingStorage:
    """Validates and stores branding images on local disk.

    Args:
        settings: Upload settings.
    """

    def __init__(self, settings: UploadSettings) -> None:
        self._settings = settings
        self._root = Path(settings.directory)

    def validate(self, filename: str | None, content_type: str | None, data: bytes) -> str:
        """Check an upload and return the file extension to store it with.

        Raises:
            InvalidUploadError: Empty, oversized or non-image file.
        """
        if not data:
            raise InvalidUploadError("Uploaded file is empty", "EMPTY_FILE")
        if len(data) > self._settings.max_bytes:
            raise InvalidUploadError(
                f"File exceeds the maximum size of {self._settings.max_bytes} bytes",
                "FILE_TOO_LARGE",
            )
        if content_type not in self._settings.allowed_types:
            raise InvalidUploadError(
                f"Unsupported file type: {content_type}",
                "UNSUPPORTED_FILE_TYPE",
                details={"allowed": sorted(self._settings.allowed_types)},
            )
        suffix = PurePath(filename or "").suffix.lower()
        return suffix or _EXTENSIONS.get(content_type, "")

    async def save(
        self,
        tenant_id: int,
        asset: str,
        filename: str | None,
        content_type: str | None,
        data: bytes,
    ) -> str:
        """Persist an upload and return its public URL.

        Args:
            tenant_id: Owning tenant.
            asset: Asset kind, used as file name prefix.
            filename: Client-side file name.
            content_type: Declared MIME type.
            data: File content.

        Returns:
            Public URL of the stored file.
        """
        extension = self.validate(filename, content_type, data)
        relative = PurePath("tenants", str(tenant_id), f"{asset}-{secrets.token_hex(4)}{extension}")
        target = self._root / relative

        await asyncio.to_thread(self._write, target, data)
        logger.info("Stored %s for tenant %s at %s", asset, tenant_id, target)

        return f"{self._settings.public_url.rstrip('/')}/{relative.as_posix()}"

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
