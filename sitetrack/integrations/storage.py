"""Local file storage for uploaded task media.

Files land under ``STORAGE_LOCAL_PATH`` and are served back by the app's static
mount at ``STORAGE_URL_PREFIX``.
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path

from pydantic import BaseModel

from sitetrack.config import settings
from sitetrack.integrations.base import BaseIntegration

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StoredFile(BaseModel):
    file_key: str
    filename: str
    content_type: str
    size_bytes: int
    url: str


def safe_filename(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(filename).name).strip("._")
    return name or "upload"


class StorageClient(BaseIntegration):
    def __init__(self, base_path: str | Path | None = None, url_prefix: str | None = None) -> None:
        super().__init__("storage")
        self._base_path = Path(base_path or settings.STORAGE_LOCAL_PATH)
        self._url_prefix = (url_prefix or settings.STORAGE_URL_PREFIX).rstrip("/")

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def health_check(self) -> bool:
        self._base_path.mkdir(parents=True, exist_ok=True)
        return self._base_path.is_dir()

    async def upload_file(
        self,
        file_content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        folder: str = "uploads",
    ) -> StoredFile:
        file_id = uuid.uuid4().hex
        name = safe_filename(filename)
        file_key = f"{folder}/{file_id}/{name}"

        local_file = self._base_path / file_key
        local_file.parent.mkdir(parents=True, exist_ok=True)
        local_file.write_bytes(file_content)

        self.logger.info("Local upload: %s (%d bytes)", file_key, len(file_content))
        return StoredFile(
            file_key=file_key,
            filename=name,
            content_type=content_type,
            size_bytes=len(file_content),
            url=f"{self._url_prefix}/{file_key}",
        )

    def key_for_url(self, url: str) -> str | None:
        """Storage key of a URL this client issued, or None for external URLs."""
        prefix = f"{self._url_prefix}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]

    async def delete_file(self, file_key: str) -> bool:
        local_file = (self._base_path / file_key).resolve()
        if self._base_path.resolve() not in local_file.parents:
            self.logger.warning("Refusing to delete outside storage root | key=%s", file_key)
            return False
        existed = local_file.is_file()
        if existed:
            local_file.unlink()
        self.logger.info("File deleted | key=%s | existed=%s", file_key, existed)
        return existed
