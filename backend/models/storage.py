from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from models.db import error_message, get_client


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Uploading to object storage failed."""


@dataclass
class StoredFile:
    bucket: str
    path: str
    url: str


def build_object_path(filename: str, path: str = "") -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    name = f"{uuid.uuid4()}.{ext}" if ext else str(uuid.uuid4())
    folder = path.strip("/")
    return f"{folder}/{name}" if folder else name


def upload_file(
    bucket: str,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
    path: str = "",
) -> StoredFile:
    """Upload ``data`` under a fresh uuid name and return its public URL."""
    full_path = build_object_path(filename, path)
    storage = get_client().storage.from_(bucket)
    options = {"content-type": content_type} if content_type else None
    try:
        res = storage.upload(full_path, data, file_options=options)
        stored_path = getattr(res, "path", None) or full_path
        url = storage.get_public_url(stored_path)
    except Exception as e:
        logger.error(f"Upload to bucket '{bucket}' failed: {e}")
        raise StorageError(error_message(e)) from e
    logger.info(f"Uploaded {filename} to {bucket}/{stored_path}")
    return StoredFile(bucket=bucket, path=stored_path, url=url)
