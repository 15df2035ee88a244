"""CRUD routes for the managed entities, one sub-router per entity."""

from typing import Any, Dict

from fastapi import APIRouter, Body, File, Query, Request, UploadFile

from api.common import UploadRejected, error_response, read_image_upload, respond
from models import db
from services import records
from services.entities import MANAGED_ENTITIES, RESOURCE, EntityConfig, get_entity
from services.submission_log import get_activity_log


def build_entity_router(entity: EntityConfig) -> APIRouter:
    router = APIRouter()
    base = f"/{entity.name}"

    @router.get(base)
    def list_entity(request: Request):
        parent_id = request.query_params.get(entity.parent_field) if entity.parent_field else None
        try:
            rows = records.list_records(entity, parent_id)
        except db.StoreError as e:
            return error_response(502, str(e))
        return {entity.name: rows}

    @router.post(base)
    def create_entity(data: Dict[str, Any] = Body(...)):
        return respond(records.create_record(entity, data))

    @router.get(f"{base}/log")
    def entity_log():
        log = get_activity_log(entity.name)
        return {"log": log.to_list(), "counts": log.counts()}

    @router.put(base + "/{key}")
    def update_entity(key: str, data: Dict[str, Any] = Body(...)):
        return respond(records.update_record(entity, key, data))

    @router.delete(base + "/{key}")
    def delete_entity(key: str, confirm: bool = Query(False)):
        return respond(records.delete_record(entity, key, confirm=confirm))

    if entity.image_fields:

        @router.post(base + "/{key}/images/{field}")
        def upload_entity_image(key: str, field: str, file: UploadFile = File(...)):
            if field not in entity.image_fields:
                return error_response(404, f"{entity.label} has no image field '{field}'")
            try:
                filename, data, content_type = read_image_upload(file)
            except UploadRejected as e:
                return error_response(400, str(e))
            return respond(records.attach_image(entity, key, field, filename, data, content_type))

    return router


router = APIRouter()
for _name in MANAGED_ENTITIES:
    router.include_router(build_entity_router(get_entity(_name)))


@router.post("/resources/{key}/short-description")
async def resource_short_description(key: str):
    return respond(await records.shorten_description(RESOURCE, key))
