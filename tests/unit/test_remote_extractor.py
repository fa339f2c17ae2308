# ============================================================================
# FILE: tests/unit/test_remote_extractor.py
# ============================================================================
"""
Unit tests for the HTTP extraction client
"""

import asyncio
import json

import aiohttp
import pytest

from conftest import FakeDecoder, FakeOCR
from medication_identification.capture.orchestrator import CaptureOrchestrator, CaptureOutcome
from medication_identification.core.context import SourceKind
from medication_identification.extractors.factory import create_extractor
from medication_identification.extractors.ai_extractor import AIExtractor
from medication_identification.extractors.remote_extractor import RemoteExtractor
from medication_identification.config import LLMSettings
from medication_identification.utils.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    InsufficientInputError,
)


class FakeResponse:
    """Body given as a str is sent verbatim, anything else as JSON"""

    def __init__(self, status, payload, delay=0.0):
        self.status = status
        self.body = payload if isinstance(payload, str) else json.dumps(payload)
        self.delay = delay

    async def read(self):
        return self.body.encode("utf-8")

    async def __aenter__(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        return self

    async def __aexit__(self, *args):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.closed = False
        self.requests = []

    def post(self, url, json=None, headers=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


def _extractor(config, session, **kwargs):
    extractor = RemoteExtractor("http://api.local/", config=config, **kwargs)
    extractor._session = session
    return extractor


SUCCESS = {
    "success": True,
    "data": {
        "brand_name": "Xarelto",
        "generic_name": "Rivaroxaban",
        "confidence_score": 0.82,
        "source_kind": "ai_extraction",
    },
    "source": "ai_extraction",
}


@pytest.mark.asyncio
async def test_success_builds_record(config):
    session = FakeSession(FakeResponse(200, SUCCESS))
    extractor = _extractor(config, session, auth_token="secret")

    record = await extractor.extract("XARELTO 20 mg tablets", barcode="4006381333931",
                                     language="az", region="AZ", session_id="s-1")

    assert record.brand_name == "Xarelto"
    assert record.source_kind == SourceKind.AI_EXTRACTION
    request = session.requests[0]
    assert request["url"] == "http://api.local/api/extract-medication"
    assert request["json"]["sessionId"] == "s-1"
    assert request["json"]["barcode"] == "4006381333931"
    assert request["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_short_text_never_calls_server(config):
    session = FakeSession(FakeResponse(200, SUCCESS))
    extractor = _extractor(config, session)

    with pytest.raises(InsufficientInputError):
        await extractor.extract("abc")
    assert session.requests == []


@pytest.mark.asyncio
async def test_server_insufficient_input(config):
    payload = {"success": False, "error": "Too little text", "error_kind": "insufficient_input"}
    extractor = _extractor(config, FakeSession(FakeResponse(422, payload)))

    with pytest.raises(InsufficientInputError):
        await extractor.extract("XARELTO 20 mg tablets")


@pytest.mark.asyncio
@pytest.mark.parametrize("status,retryable", [(502, True), (429, True), (401, False)])
async def test_error_status_retryability(config, status, retryable):
    payload = {"success": False, "error": "backend said no", "error_kind": "extraction"}
    extractor = _extractor(config, FakeSession(FakeResponse(status, payload)))

    with pytest.raises(ExtractionError) as exc_info:
        await extractor.extract("XARELTO 20 mg tablets")
    assert exc_info.value.retryable is retryable


@pytest.mark.asyncio
async def test_unreachable_server(config):
    session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
    extractor = _extractor(config, session)

    with pytest.raises(ExtractionError):
        await extractor.extract("XARELTO 20 mg tablets")


@pytest.mark.asyncio
async def test_timeout(config):
    fast = config.with_overrides(ai_timeout_seconds=0.05)
    extractor = _extractor(fast, FakeSession(FakeResponse(200, SUCCESS, delay=1.0)))

    with pytest.raises(ExtractionTimeoutError):
        await extractor.extract("XARELTO 20 mg tablets")


@pytest.mark.asyncio
async def test_close_releases_session(config):
    session = FakeSession()
    extractor = _extractor(config, session)

    await extractor.close()

    assert session.closed is True


def test_factory_prefers_remote_when_configured(config):
    remote = create_extractor(config, LLMSettings(REMOTE_EXTRACTION_URL="http://api.local"))
    assert isinstance(remote, RemoteExtractor)
    assert remote.model_version == "remote:http://api.local"

    local = create_extractor(config, LLMSettings(REMOTE_EXTRACTION_URL=None))
    assert isinstance(local, AIExtractor)


# ============================================================================
# UNUSABLE SUCCESS BODIES
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    "this is not json",
    '["a list"]',
    {"success": True},
    {"success": True, "data": "Xarelto"},
])
async def test_unusable_body_degrades(config, body):
    extractor = _extractor(config, FakeSession(FakeResponse(200, body)))

    record = await extractor.extract("XARELTO 20 mg tablets", region="AZ")

    assert record.source_kind == SourceKind.DEGRADED
    assert record.confidence_score == 0.1
    assert record.brand_name == "XARELTO 20 mg tablets"
    assert record.country_code == "AZ"


@pytest.mark.asyncio
async def test_null_confidence_gets_default(config):
    body = {"success": True, "data": {"brand_name": "Xarelto", "confidence_score": None}}
    extractor = _extractor(config, FakeSession(FakeResponse(200, body)))

    record = await extractor.extract("XARELTO 20 mg tablets")

    assert record.brand_name == "Xarelto"
    assert record.confidence_score == config.default_ai_confidence


@pytest.mark.asyncio
async def test_missing_brand_gets_placeholder(config):
    body = {"success": True, "data": {"generic_name": "Rivaroxaban", "confidence_score": 0.9}}
    extractor = _extractor(config, FakeSession(FakeResponse(200, body)))

    record = await extractor.extract("XARELTO 20 mg tablets", barcode="4006381333931")

    assert record.brand_name == "Unidentified Medication (4006381333931)"
    assert record.confidence_score == 0.1
    assert record.source_kind == SourceKind.AI_EXTRACTION


@pytest.mark.asyncio
async def test_catalog_source_from_server_is_kept(config):
    body = {"success": True, "data": {
        "brand_name": "Panadol", "confidence_score": 0.95,
        "source_kind": "barcode_catalog", "barcode": "5000159461788",
    }}
    extractor = _extractor(config, FakeSession(FakeResponse(200, body)))

    record = await extractor.extract(None, barcode="5000159461788")

    assert record.source_kind == SourceKind.BARCODE_CATALOG
    assert record.barcode == "5000159461788"


@pytest.mark.asyncio
async def test_error_status_with_plain_text_body(config):
    extractor = _extractor(config, FakeSession(FakeResponse(503, "Service Unavailable")))

    with pytest.raises(ExtractionError) as exc_info:
        await extractor.extract("XARELTO 20 mg tablets")
    assert exc_info.value.retryable is True
    assert "Service Unavailable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_orchestrator_survives_garbage_from_server(config):
    extractor = _extractor(config, FakeSession(FakeResponse(200, "<html>proxy error</html>")))
    orchestrator = CaptureOrchestrator(
        ocr=FakeOCR(text="XARELTO 20 mg film-coated tablets"),
        decoder=FakeDecoder(None),
        extractor=extractor,
        config=config,
    )

    result = await orchestrator.capture("user-1", image=object())

    assert result.outcome == CaptureOutcome.RESOLVED
    assert result.record.source_kind == SourceKind.DEGRADED
    assert result.blocked is True
