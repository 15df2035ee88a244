"""Create/update/delete operations for the managed entities.

Every operation appends to the entity's activity log and returns a result
dict instead of raising, so a failed remote call always ends up as a
visible log line.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import llm
from models import db
from models.storage import StorageError, upload_file
from services.entities import EntityConfig
from services.submission_log import get_activity_log
from utils.validation import (
    apply_defaults,
    generate_id,
    get_now,
    to_boolean,
    to_number,
    validate_row,
)

logger = logging.getLogger(__name__)

SHORTEN_MIN_CHARS = 50

# Human-readable names accepted in place of a foreign key
NAME_RESOLVERS: Dict[str, Dict[str, Tuple[str, Callable[[Optional[str]], Optional[str]]]]] = {
    "organizers": {"universityName": ("universityId", db.resolve_university_id)},
    "gallery-images": {"competitionTitle": ("competitionId", db.resolve_competition_id)},
}

# Parent rows that must exist before a child row is inserted
PARENT_RESOLVERS: Dict[str, Tuple[str, str, Callable[[Optional[str]], Optional[str]]]] = {
    "timeline-events": ("timelineId", "Timeline", db.resolve_timeline_id),
    "history-entries": ("historyId", "History", db.resolve_history_id),
}

CONTAINERS = {
    "timeline": {"table": "timeline", "label": "Timeline", "ref": "timelineId", "log": "timeline-events"},
    "history": {"table": "history", "label": "History", "ref": "historyId", "log": "history-entries"},
}


def _result(ok: bool, reason: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ok": ok}
    if reason:
        out["reason"] = reason
    out.update(extra)
    return out


def clean_row(entity: EntityConfig, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the entity's columns."""
    columns = set(entity.columns)
    return {k: v for k, v in data.items() if k in columns}


def coerce_types(entity: EntityConfig, payload: Dict[str, Any]) -> Dict[str, Any]:
    for f in entity.numeric_fields:
        if isinstance(payload.get(f), str):
            payload[f] = to_number(payload[f])
    for f in entity.boolean_fields:
        if isinstance(payload.get(f), str):
            payload[f] = to_boolean(payload[f])
    return payload


def new_record_defaults(entity: EntityConfig) -> Dict[str, Any]:
    now = get_now()
    defaults = {**entity.defaults, entity.key: generate_id(), "createdAt": now}
    if entity.has_updated_at:
        defaults["updatedAt"] = now
    return defaults


def build_payload(entity: EntityConfig, row: Mapping[str, Any]) -> Dict[str, Any]:
    payload = apply_defaults(row, new_record_defaults(entity))
    payload = coerce_types(entity, payload)
    if entity.prepare:
        payload = entity.prepare(payload)
    return payload


def _resolve_names(entity: EntityConfig, data: Mapping[str, Any]) -> Dict[str, Any]:
    row = dict(data)
    for name_field, (key_field, resolver) in NAME_RESOLVERS.get(entity.name, {}).items():
        name = row.pop(name_field, None)
        if name and not row.get(key_field):
            row[key_field] = resolver(name)
    return row


def list_records(entity: EntityConfig, parent_id: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = {entity.parent_field: parent_id} if entity.parent_field and parent_id else None
    return db.list_rows(entity.table, order=entity.order, desc=entity.order_desc, filters=filters)


def create_record(entity: EntityConfig, data: Mapping[str, Any], row_index: int = 0) -> Dict[str, Any]:
    log = get_activity_log(entity.name)
    try:
        row = clean_row(entity, _resolve_names(entity, data))
    except db.StoreError as e:
        entry = log.error(row_index, str(e), data)
        return _result(False, "store", error=str(e), log=entry.to_dict())

    ok, errors = validate_row(row, entity.required, entity.validations)
    if not ok:
        msg = f"Validation failed: {', '.join(errors)}"
        entry = log.error(row_index, msg, row)
        return _result(False, "validation", errors=errors, error=msg, log=entry.to_dict())

    payload = build_payload(entity, row)
    try:
        parent = PARENT_RESOLVERS.get(entity.name)
        if parent:
            field, label, resolver = parent
            if resolver(payload.get(field)) is None:
                msg = f"{label} not found: {payload.get(field)}"
                entry = log.error(row_index, msg, row)
                return _result(False, "validation", errors=[msg], error=msg, log=entry.to_dict())
        saved = db.insert_row(entity.table, payload)
    except db.StoreError as e:
        entry = log.error(row_index, str(e), row)
        return _result(False, "store", error=str(e), log=entry.to_dict())

    name = entity.display_name(payload)
    logger.info(f"Inserted {entity.table} {payload.get(entity.key)}")
    entry = log.success(row_index, f'{entity.label} "{name}" added successfully')
    return _result(True, record=saved, log=entry.to_dict())


def update_record(entity: EntityConfig, key: str, data: Mapping[str, Any], row_index: int = 0) -> Dict[str, Any]:
    log = get_activity_log(entity.name)
    row = clean_row(entity, data)
    # Keys and creation time are immutable
    row.pop(entity.key, None)
    row.pop("createdAt", None)

    try:
        existing = db.get_row(entity.table, entity.key, key)
    except db.StoreError as e:
        entry = log.error(row_index, str(e), row)
        return _result(False, "store", error=str(e), log=entry.to_dict())
    if existing is None:
        return _result(False, "not_found", error=f"{entity.label} not found")

    merged = {**existing, **row}
    ok, errors = validate_row(merged, entity.required, entity.validations)
    if not ok:
        msg = f"Validation failed: {', '.join(errors)}"
        entry = log.error(row_index, msg, merged)
        return _result(False, "validation", errors=errors, error=msg, log=entry.to_dict())

    full = coerce_types(entity, dict(merged))
    if entity.prepare:
        full = entity.prepare(full)
    payload = {
        k: v
        for k, v in full.items()
        if k not in (entity.key, "createdAt") and (k in row or v != existing.get(k))
    }
    if entity.has_updated_at:
        payload["updatedAt"] = get_now()

    try:
        saved = db.update_row(entity.table, entity.key, key, payload)
    except db.StoreError as e:
        entry = log.error(row_index, str(e), merged)
        return _result(False, "store", error=str(e), log=entry.to_dict())

    name = entity.display_name(merged)
    logger.info(f"Updated {entity.table} {key}")
    entry = log.success(row_index, f'{entity.label} "{name}" updated successfully')
    return _result(True, record=saved or {**merged, **payload}, log=entry.to_dict())


def delete_record(entity: EntityConfig, key: str, confirm: bool = False, row_index: int = 0) -> Dict[str, Any]:
    log = get_activity_log(entity.name)
    if not confirm:
        msg = f"Deletion of {entity.label.lower()} {key} was not confirmed"
        entry = log.skipped(row_index, msg)
        return _result(False, "unconfirmed", error=msg, log=entry.to_dict())

    try:
        existing = db.get_row(entity.table, entity.key, key)
        if existing is None:
            return _result(False, "not_found", error=f"{entity.label} not found")
        db.delete_row(entity.table, entity.key, key)
    except db.StoreError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "store", error=str(e), log=entry.to_dict())

    name = entity.display_name(existing)
    logger.info(f"Deleted {entity.table} {key}")
    entry = log.success(row_index, f'{entity.label} "{name}" deleted successfully')
    return _result(True, log=entry.to_dict())


def attach_image(
    entity: EntityConfig,
    key: str,
    field: str,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
    row_index: int = 0,
) -> Dict[str, Any]:
    """Upload an image to the entity's bucket and store its public URL in ``field``."""
    log = get_activity_log(entity.name)
    if not entity.bucket or field not in entity.image_fields:
        return _result(False, "validation", error=f"{entity.label} has no image field '{field}'")

    try:
        existing = db.get_row(entity.table, entity.key, key)
    except db.StoreError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "store", error=str(e), log=entry.to_dict())
    if existing is None:
        return _result(False, "not_found", error=f"{entity.label} not found")

    try:
        stored = upload_file(entity.bucket, filename, data, content_type)
    except StorageError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "storage", error=str(e), log=entry.to_dict())

    payload: Dict[str, Any] = {field: stored.url}
    if entity.has_updated_at:
        payload["updatedAt"] = get_now()
    try:
        db.update_row(entity.table, entity.key, key, payload)
    except db.StoreError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "store", error=str(e), url=stored.url, log=entry.to_dict())

    entry = log.success(row_index, f'{field} updated for "{entity.display_name(existing)}"')
    return _result(True, url=stored.url, path=stored.path, record={**existing, **payload}, log=entry.to_dict())


async def shorten_description(entity: EntityConfig, key: str, row_index: int = 0) -> Dict[str, Any]:
    """Generate and persist ``shortDescription`` from the stored ``longDescription``."""
    log = get_activity_log(entity.name)
    if not llm.is_ai_enabled():
        return _result(False, "unavailable", error="OpenAI API is not configured")

    try:
        existing = db.get_row(entity.table, entity.key, key)
    except db.StoreError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "store", error=str(e), log=entry.to_dict())
    if existing is None:
        return _result(False, "not_found", error=f"{entity.label} not found")

    long_description = (existing.get("longDescription") or "").strip()
    name = entity.display_name(existing)
    if len(long_description) <= SHORTEN_MIN_CHARS:
        entry = log.skipped(row_index, f'Long description of "{name}" is too short to condense')
        return _result(False, "skipped", error="Long description is too short", log=entry.to_dict())

    short = await llm.generate_short_description(long_description)
    if not short:
        entry = log.error(row_index, "Failed to generate short description")
        return _result(False, "ai", error="Failed to generate short description", log=entry.to_dict())

    payload: Dict[str, Any] = {"shortDescription": short}
    if entity.has_updated_at:
        payload["updatedAt"] = get_now()
    try:
        db.update_row(entity.table, entity.key, key, payload)
    except db.StoreError as e:
        entry = log.error(row_index, str(e))
        return _result(False, "store", error=str(e), log=entry.to_dict())

    entry = log.success(row_index, f'Short description generated for "{name}"')
    return _result(True, shortDescription=short, log=entry.to_dict())


# --- Timelines and histories ---

def list_containers(kind: str) -> List[Dict[str, Any]]:
    """Timelines/histories, each labelled with the competition that references it."""
    container = CONTAINERS[kind]
    rows = db.list_rows(container["table"])
    titles = {c.get(container["ref"]): c.get("title") for c in db.list_competition_refs() if c.get(container["ref"])}
    return [{**r, "competitionTitle": titles.get(r.get("id"), "No associated competition")} for r in rows]


def create_container(kind: str) -> Dict[str, Any]:
    container = CONTAINERS[kind]
    log = get_activity_log(container["log"])
    now = get_now()
    payload = {"id": generate_id(), "createdAt": now, "updatedAt": now}
    try:
        saved = db.insert_row(container["table"], payload)
    except db.StoreError as e:
        entry = log.error(0, str(e))
        return _result(False, "store", error=str(e), log=entry.to_dict())
    logger.info(f"Created {container['table']} {payload['id']}")
    entry = log.success(0, f"{container['label']} created successfully with ID: {payload['id']}")
    return _result(True, record=saved, log=entry.to_dict())
