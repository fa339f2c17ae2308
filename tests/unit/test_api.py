# ============================================================================
# FILE: tests/unit/test_api.py
# ============================================================================
"""
Unit tests for the HTTP API
"""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import FakeDecoder, FakeExtractor, FakeOCR
from medication_identification.api.app import create_app
from medication_identification.service import IdentificationService
from medication_identification.utils.exceptions import ExtractionError, ExtractionTimeoutError


@pytest.fixture
def make_client(config, recorder):
    """Build a TestClient around a service with a given extractor"""
    def _make(extractor=None, ocr_text="", barcode=None, service_config=None):
        service = IdentificationService(extractor=extractor or FakeExtractor(),
                                        recorder=recorder, config=service_config or config)
        app = create_app(
            service=service,
            recorder=recorder,
            collaborators_factory=lambda language: (FakeOCR(text=ocr_text), FakeDecoder(barcode)),
            config=config,
        )
        return TestClient(app)
    return _make


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (32, 32), "white").save(buffer, format="PNG")
    return buffer.getvalue()


# ============================================================================
# HEALTH
# ============================================================================

def test_health(make_client):
    with make_client() as client:
        response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["catalog_entries"] > 0


def test_model_health_without_direct_client(make_client):
    with make_client() as client:
        data = client.get("/api/health/model").json()
    assert data["healthy"] is None


# ============================================================================
# EXTRACT MEDICATION
# ============================================================================

def test_extract_barcode_hit(make_client):
    with make_client() as client:
        response = client.post("/api/extract-medication",
                               json={"barcode": "5000159461788", "region": "uk"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["brand_name"] == "Panadol"
    assert data["source"] == "barcode_catalog"
    assert data["confidence_score"] == 0.95
    assert data["region"] == "UK"


def test_extract_stores_for_identified_user(make_client, recorder, ai_record):
    with make_client(extractor=FakeExtractor(record=ai_record)) as client:
        response = client.post(
            "/api/extract-medication",
            json={"text": "XARELTO 20 mg film-coated tablets", "sessionId": "not-a-session"},
            headers={"X-User-Id": "user-1"},
        )

    assert response.status_code == 200
    assert response.json()["extraction_id"] is not None


def test_extract_requires_text_or_barcode(make_client):
    with make_client() as client:
        response = client.post("/api/extract-medication", json={"text": "   "})

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error_kind"] == "invalid_request"


def test_extract_rejects_oversized_text(make_client):
    with make_client() as client:
        response = client.post("/api/extract-medication", json={"text": "a" * 5001})
    assert response.status_code == 400


def test_extract_insufficient_input(make_client):
    with make_client() as client:
        response = client.post("/api/extract-medication", json={"text": "abc"})

    assert response.status_code == 422
    assert response.json()["error_kind"] == "insufficient_input"


def test_extract_timeout_is_retryable(make_client, config):
    surface = FakeExtractor(error=ExtractionTimeoutError("timed out", timeout=30))
    surface_config = config.with_overrides(extraction_error_policy="surface")
    with make_client(extractor=surface, service_config=surface_config) as client:
        response = client.post("/api/extract-medication",
                               json={"text": "XARELTO 20 mg film-coated tablets"})

    assert response.status_code == 504
    data = response.json()
    assert data["error_kind"] == "timeout"
    assert data["retryable"] is True


def test_extract_barcode_only_backend_error(make_client):
    failing = FakeExtractor(error=ExtractionError("invalid api key", retryable=False))
    with make_client(extractor=failing) as client:
        response = client.post("/api/extract-medication", json={"barcode": "4006381333931"})

    assert response.status_code == 502
    data = response.json()
    assert data["error_kind"] == "extraction"
    assert data["retryable"] is False


# ============================================================================
# SCAN AND CATALOG
# ============================================================================

def test_scan_upload(make_client):
    with make_client(ocr_text="ADVIL 200mg ibuprofen") as client:
        response = client.post(
            "/api/scan",
            files={"file": ("label.png", _png_bytes(), "image/png")},
            data={"region": "us"},
            headers={"X-User-Id": "user-1"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "resolved"
    assert data["record"]["brand_name"] == "Advil"
    assert data["extraction_id"] is not None


def test_scan_unreadable_upload(make_client):
    with make_client() as client:
        response = client.post(
            "/api/scan",
            files={"file": ("label.png", b"not an image", "image/png")},
        )

    data = response.json()
    assert data["outcome"] == "failed"
    assert data["error_kind"] == "device"


def test_catalog_search(make_client):
    with make_client() as client:
        response = client.get("/api/catalog", params={"q": "ibuprofen", "region": "az"})

    names = [entry["product_name"] for entry in response.json()]
    assert names == ["Ibuprofen Alkaloid"]
