from fastapi import APIRouter, File, Form, UploadFile
import logging

from api.common import UploadRejected, error_response, read_image_upload
from models.storage import StorageError, upload_file
from services.entities import ENTITIES

logger = logging.getLogger(__name__)
router = APIRouter()

# Buckets the admin pages upload into
ALLOWED_BUCKETS = sorted({e.bucket for e in ENTITIES.values() if e.bucket})


@router.post("/uploads/{bucket}")
def upload_to_bucket(bucket: str, file: UploadFile = File(...), path: str = Form("")):
    """Store an image and return its public URL without touching any record."""
    if bucket not in ALLOWED_BUCKETS:
        return error_response(404, f"Unknown bucket: {bucket}")
    try:
        filename, data, content_type = read_image_upload(file)
    except UploadRejected as e:
        return error_response(400, str(e))
    try:
        stored = upload_file(bucket, filename, data, content_type, path=path)
    except StorageError as e:
        return error_response(502, f"Error uploading file: {e}")
    return {"ok": True, "url": stored.url, "path": stored.path, "bucket": stored.bucket}
