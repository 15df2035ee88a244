from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fake_store import FakeSupabase
from models import db
from services.submission_log import reset_activity_logs


def png_bytes(size=(4, 4), color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def store():
    fake = FakeSupabase({"university": [{"id": "u1", "name": "McGill University"}]})
    db.set_client(fake)
    reset_activity_logs()
    yield fake
    db.set_client(None)


@pytest.fixture
def client(store) -> TestClient:
    import main

    return TestClient(main.app)


def test_upload_returns_public_url(client: TestClient, store):
    r = client.post(
        "/api/uploads/universities",
        files={"file": ("logo.PNG", png_bytes(), "image/png")},
        data={"path": "logos/"},
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["path"].startswith("logos/") and data["path"].endswith(".png")
    assert data["url"] == f"https://fake.supabase.co/storage/v1/object/public/universities/{data['path']}"
    content, options = store.objects[("universities", data["path"])]
    assert content == png_bytes()
    assert options == {"content-type": "image/png"}


def test_upload_names_are_unique(client: TestClient):
    paths = {
        client.post("/api/uploads/gallery", files={"file": ("a.png", png_bytes(), "image/png")}).json()["path"]
        for _ in range(3)
    }
    assert len(paths) == 3


def test_rejects_non_images(client: TestClient):
    r = client.post("/api/uploads/universities", files={"file": ("fake.png", b"not really a png", "image/png")})
    assert r.status_code == 400
    assert "not a valid image" in r.json()["error"]

    r = client.post("/api/uploads/universities", files={"file": ("tool.exe", b"MZ...", "application/octet-stream")})
    assert r.status_code == 400
    assert "is not an image" in r.json()["error"]


def test_rejects_oversized_files(client: TestClient, monkeypatch):
    import api.common as common

    monkeypatch.setattr(common, "MAX_FILE_BYTES", 10)
    r = client.post("/api/uploads/universities", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 400
    assert "exceeds" in r.json()["error"]


def test_unknown_bucket(client: TestClient):
    r = client.post("/api/uploads/secrets", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 404


def test_storage_failure_is_502(client: TestClient, store):
    store.storage_failure = "Bucket not found"
    r = client.post("/api/uploads/universities", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 502
    assert r.json()["error"] == "Error uploading file: Bucket not found"


def test_attach_image_to_record(client: TestClient, store):
    r = client.post("/api/universities/u1/images/logoUrl", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 200, r.text
    url = r.json()["url"]
    row = db.get_row("university", "id", "u1")
    assert row["logoUrl"] == url
    assert row["updatedAt"]
    assert r.json()["log"]["message"] == 'logoUrl updated for "McGill University"'


def test_attach_image_unknown_field_or_record(client: TestClient):
    r = client.post("/api/universities/u1/images/orgLogoUrl", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 404
    r = client.post("/api/universities/nope/images/logoUrl", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 404


def test_upload_in_fallback_mode(client: TestClient):
    db.set_client(None)
    r = client.post("/api/uploads/universities", files={"file": ("logo.png", png_bytes(), "image/png")})
    assert r.status_code == 503
    assert r.json()["fallback"] is True
