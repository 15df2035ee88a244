import io
from typing import Any, Dict, Optional, Tuple

from fastapi import UploadFile
from fastapi.responses import JSONResponse
from PIL import Image, UnidentifiedImageError  # type: ignore

from config import settings


MAX_FILE_BYTES = int(settings.MAX_UPLOAD_MB * 1024 * 1024)
ALLOWED_IMAGE_EXT = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}

# Service failure reason -> HTTP status
REASON_STATUS = {
    "validation": 400,
    "unconfirmed": 400,
    "not_found": 404,
    "skipped": 409,
    "ai": 500,
    "store": 502,
    "storage": 502,
    "unavailable": 503,
}


class UploadRejected(ValueError):
    pass


def respond(result: Dict[str, Any]):
    """Turn a service result into a response; failures keep their log entry."""
    if result.get("ok"):
        return result
    status = REASON_STATUS.get(result.get("reason", ""), 400)
    return JSONResponse(status_code=status, content=result)


def _extension(filename: str) -> str:
    return ("." + filename.rsplit(".", 1)[-1].lower()) if "." in filename else ""


def read_image_upload(file: UploadFile) -> Tuple[str, bytes, Optional[str]]:
    """Read an uploaded image, enforcing the size limit and checking it decodes.

    Raises UploadRejected with a user-facing message.
    """
    filename = file.filename or "upload"
    raw = file.file.read()
    if not raw:
        raise UploadRejected(f"File '{filename}' is empty")
    if len(raw) > MAX_FILE_BYTES:
        raise UploadRejected(f"File '{filename}' exceeds {settings.MAX_UPLOAD_MB:g}MB limit")

    ext = _extension(filename)
    if ext and ext not in ALLOWED_IMAGE_EXT:
        raise UploadRejected(f"File '{filename}' is not an image")
    if ext == ".svg":
        # Vector images are not decodable by Pillow
        return filename, raw, file.content_type or "image/svg+xml"

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.verify()
            fmt = (img.format or "").lower()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise UploadRejected(f"File '{filename}' is not a valid image: {e}") from e

    content_type = file.content_type
    if not content_type or not content_type.startswith("image/"):
        content_type = f"image/{'jpeg' if fmt == 'jpg' else fmt}" if fmt else None
    return filename, raw, content_type


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})
