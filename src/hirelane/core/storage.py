from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from hirelane.config import Settings, get_settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore:
    """Uploaded files on local disk, addressed by an opaque storage id."""

    def __init__(self, root: Path | None = None, settings: Settings | None = None):
        settings = settings or get_settings()
        self.root = Path(root or settings.upload_dir)

    def save(self, content: bytes, file_name: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        suffix = Path(_UNSAFE_CHARS.sub("_", file_name)).suffix.lower()
        storage_id = f"{uuid.uuid4().hex}{suffix}"
        self.path_for(storage_id).write_bytes(content)
        logger.info("Stored blob storage_id=%s bytes=%s", storage_id, len(content))
        return storage_id

    def read(self, storage_id: str) -> bytes:
        path = self.path_for(storage_id)
        if not path.exists():
            raise ValueError(f"blob {storage_id} not found")
        return path.read_bytes()

    def delete(self, storage_id: str) -> bool:
        path = self.path_for(storage_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def path_for(self, storage_id: str) -> Path:
        if "/" in storage_id or "\\" in storage_id or storage_id.startswith("."):
            raise ValueError(f"invalid storage id {storage_id!r}")
        return self.root / storage_id
