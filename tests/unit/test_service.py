# ============================================================================
# FILE: tests/unit/test_service.py
# ============================================================================
"""
Unit tests for server-side identification (text/barcode already captured)
"""

import pytest

from conftest import FakeExtractor, FakeLLMClient
from medication_identification.core.context import RiskFlag, SourceKind
from medication_identification.extractors.ai_extractor import AIExtractor
from medication_identification.service import IdentificationService
from medication_identification.utils.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    InsufficientInputError,
)


@pytest.mark.asyncio
async def test_barcode_resolves_first(config):
    service = IdentificationService(extractor=FakeExtractor(), config=config)

    result = await service.identify("ADVIL 200mg", barcode="5000159461788", region="uk")

    assert result.record.brand_name == "Panadol"
    assert result.record.source_kind == SourceKind.BARCODE_CATALOG
    assert result.region == "UK"
    assert result.language == "en"


@pytest.mark.asyncio
async def test_text_resolves_when_barcode_misses(config):
    extractor = FakeExtractor()
    service = IdentificationService(extractor=extractor, config=config)

    result = await service.identify("Coumadin 5mg", barcode="000")

    assert result.record.brand_name == "Coumadin"
    assert result.assessment.has_flag(RiskFlag.HIGH_RISK_MED)
    assert extractor.calls == []


@pytest.mark.asyncio
async def test_insufficient_input_raises(config):
    extractor = FakeExtractor()
    service = IdentificationService(extractor=extractor, config=config)

    with pytest.raises(InsufficientInputError):
        await service.identify("abc")
    assert extractor.calls == []


@pytest.mark.asyncio
async def test_ai_fallback_is_stored_for_identified_users(config, recorder, ai_record):
    service = IdentificationService(extractor=FakeExtractor(record=ai_record),
                                    recorder=recorder, config=config)
    session_id = await recorder.create_session("user-1", None, "en", "US")

    result = await service.identify("XARELTO 20 mg film-coated tablets",
                                    user_id="user-1", session_id=session_id)

    assert result.extraction_id is not None
    session = await recorder.get_session(session_id, "user-1")
    assert session.extraction_id == result.extraction_id


@pytest.mark.asyncio
async def test_anonymous_requests_are_not_stored(config, recorder, ai_record):
    service = IdentificationService(extractor=FakeExtractor(record=ai_record),
                                    recorder=recorder, config=config)

    result = await service.identify("XARELTO 20 mg film-coated tablets")

    assert result.extraction_id is None


@pytest.mark.asyncio
async def test_link_to_foreign_session_does_not_fail_request(config, recorder, ai_record):
    service = IdentificationService(extractor=FakeExtractor(record=ai_record),
                                    recorder=recorder, config=config)
    session_id = await recorder.create_session("someone-else", None, "en", "US")

    result = await service.identify("XARELTO 20 mg film-coated tablets",
                                    user_id="user-1", session_id=session_id)

    assert result.extraction_id is not None
    session = await recorder.get_session(session_id, "someone-else")
    assert session.extraction_id is None


@pytest.mark.asyncio
async def test_timeout_degrades_by_default(config):
    fast = config.with_overrides(ai_timeout_seconds=0.05)
    extractor = AIExtractor(client=FakeLLMClient(delay=1.0), config=fast)
    service = IdentificationService(extractor=extractor, config=fast)

    result = await service.identify("xyz123 unreadable blur")

    assert result.record.source_kind == SourceKind.DEGRADED
    assert result.assessment.blocks_presentation is True


@pytest.mark.asyncio
async def test_timeout_surfaces_with_surface_policy(config):
    surface = config.with_overrides(ai_timeout_seconds=0.05, extraction_error_policy="surface")
    extractor = AIExtractor(client=FakeLLMClient(delay=1.0), config=surface)
    service = IdentificationService(extractor=extractor, config=surface)

    with pytest.raises(ExtractionTimeoutError):
        await service.identify("xyz123 unreadable blur")


@pytest.mark.asyncio
async def test_barcode_only_failure_is_surfaced(config):
    """Nothing to degrade from without text"""
    service = IdentificationService(
        extractor=FakeExtractor(error=ExtractionError("quota exceeded", retryable=False)),
        config=config,
    )

    with pytest.raises(ExtractionError):
        await service.identify(None, barcode="4006381333931")


@pytest.mark.asyncio
async def test_response_shape(config):
    service = IdentificationService(extractor=FakeExtractor(), config=config)

    response = (await service.identify("ADVIL 200mg")).to_response()

    assert response["success"] is True
    assert response["source"] == "text_catalog"
    assert response["confidence_score"] == 0.85
    assert response["data"]["brand_name"] == "Advil"
    assert response["assessment"]["blocks_presentation"] is False
    assert response["region"] == "US"
