"""Competition pickers and the bulk paste import workflow."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Form
import logging

from api.common import error_response
from config import settings
from models import db
from services.bulk_import import (
    HEADERS,
    INSTRUCTIONS,
    BatchNotFound,
    RowNotFound,
    get_bulk_import_service,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _not_found(e: Exception):
    if isinstance(e, BatchNotFound):
        return error_response(404, "Import batch not found")
    return error_response(404, "Row not found")


@router.get("/competitions")
def list_competitions():
    """Id/title pairs (plus linked timeline and history) for pickers."""
    try:
        competitions = db.list_competition_refs()
    except db.StoreError as e:
        return error_response(502, str(e))
    return {"competitions": competitions}


@router.get("/competitions/bulk/headers")
def bulk_headers():
    return {"headers": HEADERS, "instructions": INSTRUCTIONS}


@router.post("/competitions/bulk/parse")
def bulk_parse(text: str = Form("")):
    service = get_bulk_import_service()
    service.cleanup_old_batches(settings.BULK_BATCH_MAX_AGE_HOURS)
    batch = service.parse(text)
    return {"ok": True, **batch.to_dict()}


@router.get("/competitions/bulk/{batch_id}")
def bulk_get(batch_id: str):
    try:
        batch = get_bulk_import_service().get(batch_id)
    except BatchNotFound as e:
        return _not_found(e)
    return batch.to_dict()


@router.delete("/competitions/bulk/{batch_id}")
def bulk_discard(batch_id: str):
    if not get_bulk_import_service().discard(batch_id):
        return error_response(404, "Import batch not found")
    return {"ok": True}


@router.put("/competitions/bulk/{batch_id}/valid/{index}")
def bulk_update_valid(batch_id: str, index: int, row: Dict[str, Any] = Body(...)):
    try:
        item = get_bulk_import_service().update_valid_row(batch_id, index, row)
    except (BatchNotFound, RowNotFound) as e:
        return _not_found(e)
    return {"ok": True, "row": item.model_dump(by_alias=True)}


@router.put("/competitions/bulk/{batch_id}/errors/{index}")
def bulk_update_error(batch_id: str, index: int, row: Dict[str, Any] = Body(...)):
    try:
        item = get_bulk_import_service().update_error_row(batch_id, index, row)
    except (BatchNotFound, RowNotFound) as e:
        return _not_found(e)
    return {"ok": True, "row": item.model_dump(by_alias=True)}


@router.post("/competitions/bulk/{batch_id}/submit")
def bulk_submit(batch_id: str):
    """Insert every valid row in order; failures move to the error set."""
    try:
        batch = get_bulk_import_service().submit_valid(batch_id)
    except BatchNotFound as e:
        return _not_found(e)
    counts = batch.log.counts()
    logger.info(f"Batch {batch_id} submitted: {counts}")
    return {"ok": counts.get("error", 0) == 0 and counts.get("skipped", 0) == 0, **batch.to_dict()}


@router.post("/competitions/bulk/{batch_id}/errors/{index}/retry")
def bulk_retry(batch_id: str, index: int):
    try:
        result = get_bulk_import_service().retry_error(batch_id, index)
    except (BatchNotFound, RowNotFound) as e:
        return _not_found(e)
    if not result.get("ok"):
        status = 502 if "log" in result else 400
        return error_response(status, result.get("error", "Unknown error"), **{k: v for k, v in result.items() if k != "error"})
    return result


@router.post("/competitions/bulk/{batch_id}/valid/{index}/short-description")
async def bulk_short_description(batch_id: str, index: int):
    try:
        result = await get_bulk_import_service().generate_short_description(batch_id, index)
    except (BatchNotFound, RowNotFound) as e:
        return _not_found(e)
    if result.get("ok"):
        return result
    if result.get("unavailable"):
        return error_response(503, result["error"])
    if result.get("skipped"):
        return error_response(409, result["error"])
    return error_response(500, result.get("error", "Failed to generate short description"))
