from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from fake_store import FakeSupabase
from models import db
from services import bulk_import
from services.bulk_import import HEADERS, BatchNotFound, BulkImportService, RowNotFound


def make_line(sep: str = "\t", **values: str) -> str:
    return sep.join(values.get(h, "") for h in HEADERS)


@pytest.fixture
def store():
    fake = FakeSupabase(
        {
            "university": [{"id": "u1", "name": "McGill University"}],
            "organizer": [
                {"orgId": "o1", "orgName": "Case Club"},
                {"orgId": "o2", "orgName": "CASE CLUB"},
                {"orgId": "o3", "orgName": "Deloitte"},
            ],
            "competition": [],
        }
    )
    db.set_client(fake)
    yield fake
    db.set_client(None)


@pytest.fixture
def service(store) -> BulkImportService:
    return BulkImportService()


def test_headers_are_fixed():
    assert len(HEADERS) == 21
    assert HEADERS[0] == "title"
    assert HEADERS[-2:] == ["universityName", "organizerName"]


def test_parse_splits_valid_and_error_rows(service):
    text = "\n".join(
        [
            make_line(title="Case Cup", format="VIRTUAL"),
            make_line(title="Bad Prize", prizeAmount="lots"),
            make_line(title="Bad Format", format="ONLINE", websiteUrl="nope"),
            make_line(title="Plain"),
        ]
    )
    batch = service.parse(text)

    assert [v.row_index for v in batch.valid_rows] == [0, 3]
    assert [e.row_index for e in batch.error_rows] == [1, 2]
    assert batch.error_rows[0].error == "Invalid value for field: prizeAmount"
    assert batch.error_rows[1].errors == [
        "Invalid value for field: format",
        "Invalid value for field: websiteUrl",
    ]
    assert len(batch.log) == 0


def test_missing_title_is_an_error_row(service):
    batch = service.parse("Good,Short\n,Only short")
    assert [v.row["title"] for v in batch.valid_rows] == ["Good"]
    assert batch.error_rows[0].errors == ["Missing required field: title"]


def test_submit_builds_full_payload(service, store):
    text = make_line(
        title="Case Cup",
        format="HYBRID",
        tags="finance, strategy,,",
        prizeAmount="5000",
        registrationFee="12.5",
        teamSizeMin="2",
        teamSizeMax="4",
        lastDayToRegister="2025-01-31",
        universityName="mcgill university",
        organizerName="Deloitte",
    )
    batch = service.parse(text)
    service.submit_valid(batch.batch_id)

    [row] = store.rows("competition")
    assert row["title"] == "Case Cup"
    assert row["tags"] == ["finance", "strategy"]
    assert row["prizeAmount"] == 5000
    assert row["registrationFee"] == 12.5
    assert row["teamSizeMin"] == 2 and row["teamSizeMax"] == 4
    assert row["universityId"] == "u1"
    assert row["organizerId"] == "o3"
    assert row["isInternal"] is False and row["isFeatured"] is False
    assert row["isHostedByCaseComp"] is False and row["isConfirmed"] is True
    assert row["id"] and row["createdAt"] == row["updatedAt"]
    assert "universityName" not in row and "organizerName" not in row

    entry = batch.log.entries()[0]
    assert entry.status == "success"
    assert entry.message == 'Competition "Case Cup" inserted successfully'
    assert batch.valid_rows == []


def test_unresolved_university_is_inserted_as_null(service, store):
    batch = service.parse(make_line(title="Orphan", universityName="Unknown U"))
    service.submit_valid(batch.batch_id)
    [row] = store.rows("competition")
    assert row["universityId"] is None
    assert batch.log.counts()["success"] == 1


def test_ambiguous_organizer_fails_only_that_row(service, store):
    text = "\n".join(
        [
            make_line(title="First"),
            make_line(title="Ambiguous", organizerName="case club"),
            make_line(title="Third"),
        ]
    )
    batch = service.parse(text)
    service.submit_valid(batch.batch_id)

    assert [r["title"] for r in store.rows("competition")] == ["First", "Third"]
    entries = batch.log.entries()
    assert [e.status for e in entries] == ["success", "error", "success"]
    assert "Ambiguous orgName 'case club'" in entries[1].message
    assert entries[1].payload["title"] == "Ambiguous"
    assert [e.row["title"] for e in batch.error_rows] == ["Ambiguous"]


def test_store_failure_moves_row_to_errors_and_retry_succeeds(service, store):
    store.fail("insert", "competition", "permission denied for table competition")
    batch = service.parse(make_line(title="Locked"))
    service.submit_valid(batch.batch_id)

    assert batch.log.counts() == {"success": 0, "error": 1, "skipped": 0}
    assert batch.error_rows[0].error == "permission denied for table competition"

    store.failures.clear()
    result = service.retry_error(batch.batch_id, 0)
    assert result["ok"] is True
    assert batch.error_rows == []
    assert [r["title"] for r in store.rows("competition")] == ["Locked"]
    assert batch.log.counts()["success"] == 1


def test_retry_still_invalid_updates_message(service, store):
    batch = service.parse(make_line(title="Bad", prizeAmount="lots"))
    service.update_error_row(batch.batch_id, 0, {"title": "Bad", "prizeAmount": "still bad", "websiteUrl": "x"})
    result = service.retry_error(batch.batch_id, 0)
    assert result["ok"] is False
    assert result["errors"] == ["Invalid value for field: websiteUrl", "Invalid value for field: prizeAmount"]
    assert store.rows("competition") == []
    assert len(batch.log) == 0


def test_corrected_error_row_can_be_retried(service, store):
    batch = service.parse(make_line(title="Fixable", prizeAmount="lots"))
    service.update_error_row(batch.batch_id, 0, {"title": "Fixable", "prizeAmount": "250"})
    assert service.retry_error(batch.batch_id, 0)["ok"] is True
    assert store.rows("competition")[0]["prizeAmount"] == 250


def test_valid_row_edited_into_invalid_state_is_skipped(service, store):
    batch = service.parse("\n".join([make_line(title="Keep"), make_line(title="Break")]))
    service.update_valid_row(batch.batch_id, 1, {"title": "", "city": "Toronto"})
    service.submit_valid(batch.batch_id)

    assert [r["title"] for r in store.rows("competition")] == ["Keep"]
    assert [e.status for e in batch.log.entries()] == ["success", "skipped"]
    assert batch.error_rows[0].errors == ["Missing required field: title"]


def test_unknown_batch_and_row(service):
    with pytest.raises(BatchNotFound):
        service.get("nope")
    batch = service.parse(make_line(title="Only"))
    with pytest.raises(RowNotFound):
        service.update_valid_row(batch.batch_id, 3, {"title": "x"})


def test_cleanup_old_batches(service):
    batch = service.parse(make_line(title="Old"))
    assert service.cleanup_old_batches(max_age_hours=24) == 0
    assert service.cleanup_old_batches(max_age_hours=-1) == 1
    with pytest.raises(BatchNotFound):
        service.get(batch.batch_id)


def test_short_description_for_valid_row(service, monkeypatch):
    import llm

    async def fake_shorten(text: str):
        return "A short blurb."

    monkeypatch.setattr(llm, "is_ai_enabled", lambda: True)
    monkeypatch.setattr(llm, "generate_short_description", fake_shorten)

    batch = service.parse(make_line(title="Long", longDescription="word " * 30))
    result = asyncio.run(service.generate_short_description(batch.batch_id, 0))
    assert result["ok"] is True
    assert batch.valid_rows[0].row["shortDescription"] == "A short blurb."


def test_short_description_skips_short_text(service, monkeypatch):
    import llm

    monkeypatch.setattr(llm, "is_ai_enabled", lambda: True)
    batch = service.parse(make_line(title="Brief", longDescription="Too short"))
    result = asyncio.run(service.generate_short_description(batch.batch_id, 0))
    assert result["ok"] is False and result["skipped"] is True


# --- HTTP ---


@pytest.fixture
def client(store, monkeypatch) -> TestClient:
    monkeypatch.setattr(bulk_import, "_bulk_import_service", None)
    import main

    return TestClient(main.app)


def test_bulk_routes_end_to_end(client: TestClient, store):
    r = client.get("/api/competitions/bulk/headers")
    assert r.status_code == 200
    assert r.json()["headers"] == HEADERS

    text = "\n".join([make_line(title="Web Cup"), make_line(title="Broken", teamSizeMin="two")])
    r = client.post("/api/competitions/bulk/parse", data={"text": text})
    assert r.status_code == 200, r.text
    data = r.json()
    batch_id = data["batch_id"]
    assert data["parsed"] == 2
    assert len(data["valid_rows"]) == 1 and len(data["error_rows"]) == 1
    assert data["error_rows"][0]["errors"] == ["Invalid value for field: teamSizeMin"]

    r = client.post(f"/api/competitions/bulk/{batch_id}/submit")
    assert r.status_code == 200
    assert r.json()["counts"]["success"] == 1
    assert r.json()["log"][0]["message"] == 'Competition "Web Cup" inserted successfully'

    r = client.post(f"/api/competitions/bulk/{batch_id}/errors/0/retry")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid value for field: teamSizeMin"

    r = client.put(f"/api/competitions/bulk/{batch_id}/errors/0", json={"title": "Broken", "teamSizeMin": "2"})
    assert r.status_code == 200
    r = client.post(f"/api/competitions/bulk/{batch_id}/errors/0/retry")
    assert r.status_code == 200, r.text
    assert len(store.rows("competition")) == 2

    r = client.get("/api/competitions")
    assert [c["title"] for c in r.json()["competitions"]] == ["Broken", "Web Cup"]

    assert client.delete(f"/api/competitions/bulk/{batch_id}").status_code == 200
    assert client.get(f"/api/competitions/bulk/{batch_id}").status_code == 404


def test_bulk_missing_row_is_404(client: TestClient):
    r = client.post("/api/competitions/bulk/parse", data={"text": make_line(title="One")})
    batch_id = r.json()["batch_id"]
    r = client.put(f"/api/competitions/bulk/{batch_id}/valid/9", json={"title": "x"})
    assert r.status_code == 404
    assert r.json()["error"] == "Row not found"


def test_submit_in_fallback_mode_keeps_rows(service, store):
    batch = service.parse("\n".join([make_line(title="One"), make_line(title="Two")]))
    db.set_client(None)
    with pytest.raises(db.StoreNotConfiguredError):
        service.submit_valid(batch.batch_id)
    assert [v.row["title"] for v in batch.valid_rows] == ["One", "Two"]
    assert batch.error_rows == []
    assert len(batch.log) == 0


def test_bulk_submit_route_in_fallback_mode_keeps_rows(client: TestClient):
    r = client.post(
        "/api/competitions/bulk/parse",
        data={"text": "\n".join([make_line(title="One"), make_line(title="Two")])},
    )
    batch_id = r.json()["batch_id"]
    db.set_client(None)

    r = client.post(f"/api/competitions/bulk/{batch_id}/submit")
    assert r.status_code == 503
    assert r.json()["fallback"] is True

    data = client.get(f"/api/competitions/bulk/{batch_id}").json()
    assert [v["row"]["title"] for v in data["valid_rows"]] == ["One", "Two"]
    assert data["error_rows"] == [] and data["log"] == []


def test_infinite_numbers_are_error_rows(service, store):
    batch = service.parse(make_line(title="Huge", prizeAmount="1e999", teamSizeMax="Infinity"))
    assert batch.valid_rows == []
    assert batch.error_rows[0].errors == [
        "Invalid value for field: prizeAmount",
        "Invalid value for field: teamSizeMax",
    ]
