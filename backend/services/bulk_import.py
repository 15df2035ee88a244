"""Bulk paste import for competitions.

A batch holds the parsed rows split into a valid set and an error set plus
its own submission log. Rows are submitted one at a time, in order, and a
failure on one row never stops the others.
"""

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import llm
from models import db
from models.schemas import ErrorRow, ValidRow
from services.entities import COMPETITION
from services.records import SHORTEN_MIN_CHARS, build_payload, clean_row
from services.submission_log import SubmissionLog
from utils.text import parse_delimited_text
from utils.validation import validate_row

logger = logging.getLogger(__name__)

HEADERS = [
    "title",
    "shortDescription",
    "longDescription",
    "format",
    "category",
    "tags",
    "prizeAmount",
    "shortPrizeInfo",
    "registrationFee",
    "registrationInfo",
    "eligibilityInfo",
    "lastDayToRegister",
    "city",
    "state",
    "country",
    "websiteUrl",
    "competitionImageUrl",
    "teamSizeMin",
    "teamSizeMax",
    "universityName",  # resolved to universityId
    "organizerName",  # resolved to organizerId
]

REQUIRED_FIELDS = list(COMPETITION.required)
TYPE_VALIDATIONS = dict(COMPETITION.validations)

INSTRUCTIONS = {
    "title": "(required) Competition name",
    "shortDescription": "Brief description (max 50 words)",
    "longDescription": "Detailed description",
    "format": "IN_PERSON, VIRTUAL, or HYBRID",
    "universityName": "Will be resolved to universityId",
    "organizerName": "Will be resolved to organizerId",
}


class BatchNotFound(KeyError):
    pass


class RowNotFound(IndexError):
    pass


def validate_competition_row(row: Mapping[str, Any]):
    return validate_row(row, REQUIRED_FIELDS, TYPE_VALIDATIONS)


def split_tags(value: Any) -> Any:
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return value


def build_competition_payload(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Defaults, foreign keys, tags and types for one competition row.

    Raises StoreError (including AmbiguousReferenceError) when a name lookup fails.
    """
    payload = build_payload(COMPETITION, clean_row(COMPETITION, row))

    university_name = row.get("universityName")
    if university_name:
        payload["universityId"] = db.resolve_university_id(university_name)
    organizer_name = row.get("organizerName")
    if organizer_name:
        payload["organizerId"] = db.resolve_organizer_id(organizer_name)

    if "tags" in payload:
        payload["tags"] = split_tags(payload["tags"])
    return payload


class ImportBatch:
    """Server-side state of one bulk paste session."""

    def __init__(self, batch_id: str, rows: List[Dict[str, Any]]):
        self.batch_id = batch_id
        self.parsed_rows = rows
        self.valid_rows: List[ValidRow] = []
        self.error_rows: List[ErrorRow] = []
        self.log = SubmissionLog()
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "parsed": len(self.parsed_rows),
            "valid_rows": [v.model_dump(by_alias=True) for v in self.valid_rows],
            "error_rows": [e.model_dump(by_alias=True) for e in self.error_rows],
            "log": self.log.to_list(),
            "counts": self.log.counts(),
        }


class BulkImportService:
    """Registry of in-flight import batches."""

    def __init__(self):
        self.batches: Dict[str, ImportBatch] = {}
        self._lock = threading.RLock()

    # --- lifecycle ---

    def parse(self, text: str) -> ImportBatch:
        rows = parse_delimited_text(text, HEADERS)
        batch = ImportBatch(str(uuid.uuid4()), rows)
        for index, row in enumerate(rows):
            ok, errors = validate_competition_row(row)
            if ok:
                batch.valid_rows.append(ValidRow(row_index=index, row=row))
            else:
                batch.error_rows.append(ErrorRow(row_index=index, row=row, errors=errors, error=", ".join(errors)))
        with self._lock:
            self.batches[batch.batch_id] = batch
        logger.info(
            f"Parsed batch {batch.batch_id}: {len(rows)} rows, "
            f"{len(batch.valid_rows)} valid, {len(batch.error_rows)} with errors"
        )
        return batch

    def get(self, batch_id: str) -> ImportBatch:
        with self._lock:
            batch = self.batches.get(batch_id)
        if batch is None:
            raise BatchNotFound(batch_id)
        return batch

    def discard(self, batch_id: str) -> bool:
        with self._lock:
            return self.batches.pop(batch_id, None) is not None

    def cleanup_old_batches(self, max_age_hours: int = 24) -> int:
        cutoff = datetime.now(timezone.utc).timestamp() - (max_age_hours * 3600)
        with self._lock:
            stale = [bid for bid, b in self.batches.items() if b.updated_at.timestamp() < cutoff]
            for bid in stale:
                del self.batches[bid]
        if stale:
            logger.info(f"Cleaned up {len(stale)} old import batches")
        return len(stale)

    # --- editing ---

    def update_valid_row(self, batch_id: str, index: int, row: Mapping[str, Any]) -> ValidRow:
        batch = self.get(batch_id)
        with self._lock:
            item = self._pick(batch.valid_rows, index)
            item.row = dict(row)
            batch.updated_at = datetime.now(timezone.utc)
            return item

    def update_error_row(self, batch_id: str, index: int, row: Mapping[str, Any]) -> ErrorRow:
        batch = self.get(batch_id)
        with self._lock:
            item = self._pick(batch.error_rows, index)
            item.row = dict(row)
            batch.updated_at = datetime.now(timezone.utc)
            return item

    # --- submission ---

    def submit_row(self, batch: ImportBatch, row: Mapping[str, Any], row_index: int) -> bool:
        """Insert one row and record the outcome. Never raises for store errors."""
        try:
            payload = build_competition_payload(row)
            db.insert_row(COMPETITION.table, payload)
        except db.StoreError as e:
            logger.error(f"Row {row_index} of batch {batch.batch_id} failed: {e}")
            batch.log.error(row_index, str(e), row)
            return False
        batch.log.success(row_index, f'Competition "{payload.get("title")}" inserted successfully')
        return True

    def submit_valid(self, batch_id: str) -> ImportBatch:
        batch = self.get(batch_id)
        with self._lock:
            queued = list(batch.valid_rows)
            batch.valid_rows = []

        done = 0
        try:
            for item in queued:
                ok, errors = validate_competition_row(item.row)
                if not ok:
                    message = ", ".join(errors)
                    batch.log.skipped(item.row_index, message, item.row)
                    self._add_error_row(batch, item, errors)
                elif not self.submit_row(batch, item.row, item.row_index):
                    message = batch.log.entries()[-1].message or "Unknown error"
                    self._add_error_row(batch, item, [message])
                done += 1
        finally:
            # Rows not reached (e.g. store not configured) go back to the valid set
            if done < len(queued):
                with self._lock:
                    batch.valid_rows = queued[done:] + batch.valid_rows
            batch.updated_at = datetime.now(timezone.utc)
        return batch

    def _add_error_row(self, batch: ImportBatch, item: ValidRow, errors: List[str]) -> None:
        with self._lock:
            batch.error_rows.append(
                ErrorRow(row_index=item.row_index, row=item.row, errors=errors, error=", ".join(errors))
            )

    def retry_error(self, batch_id: str, index: int) -> Dict[str, Any]:
        batch = self.get(batch_id)
        with self._lock:
            item = self._pick(batch.error_rows, index)

        ok, errors = validate_competition_row(item.row)
        if not ok:
            item.errors = errors
            item.error = ", ".join(errors)
            return {"ok": False, "error": item.error, "errors": errors, "row": item.model_dump(by_alias=True)}

        if self.submit_row(batch, item.row, item.row_index):
            with self._lock:
                if item in batch.error_rows:
                    batch.error_rows.remove(item)
            batch.updated_at = datetime.now(timezone.utc)
            return {"ok": True, "log": batch.log.entries()[-1].to_dict()}

        entry = batch.log.entries()[-1]
        item.errors = [entry.message or "Unknown error"]
        item.error = item.errors[0]
        return {"ok": False, "error": item.error, "errors": item.errors, "log": entry.to_dict()}

    async def generate_short_description(self, batch_id: str, index: int) -> Dict[str, Any]:
        batch = self.get(batch_id)
        with self._lock:
            item = self._pick(batch.valid_rows, index)
        long_description = (item.row.get("longDescription") or "").strip()
        if len(long_description) <= SHORTEN_MIN_CHARS:
            return {"ok": False, "skipped": True, "error": "Long description is too short"}
        if not llm.is_ai_enabled():
            return {"ok": False, "unavailable": True, "error": "OpenAI API is not configured"}

        short = await llm.generate_short_description(long_description)
        if not short:
            return {"ok": False, "error": "Failed to generate short description"}
        row = copy.deepcopy(item.row)
        row["shortDescription"] = short
        item.row = row
        return {"ok": True, "shortDescription": short, "row": item.model_dump(by_alias=True)}

    @staticmethod
    def _pick(items: list, index: int):
        if index < 0 or index >= len(items):
            raise RowNotFound(index)
        return items[index]


# Global service instance
_bulk_import_service: Optional[BulkImportService] = None


def get_bulk_import_service() -> BulkImportService:
    """Get the global bulk import service instance."""
    global _bulk_import_service
    if _bulk_import_service is None:
        _bulk_import_service = BulkImportService()
    return _bulk_import_service
