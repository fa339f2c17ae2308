# ============================================================================
# FILE: tests/unit/test_context.py
# ============================================================================
"""
Unit tests for the pipeline data types and locale helpers
"""

import json
import logging

from medication_identification.core.context import (
    MedicationRecord,
    RawSignal,
    RiskAssessment,
    RiskFlag,
    SourceKind,
    UsageInstructions,
)
from medication_identification.core.locale import normalize_language, normalize_region
from medication_identification.utils.logging import JsonFormatter


def test_confidence_is_clamped():
    assert MedicationRecord("A", 1.7, SourceKind.AI_EXTRACTION).confidence_score == 1.0
    assert MedicationRecord("A", -0.2, SourceKind.AI_EXTRACTION).confidence_score == 0.0


def test_unusable_confidence_falls_back_to_default(config):
    """NaN must not clamp to full confidence"""
    for value in (float("nan"), float("inf"), None, "high", True):
        record = MedicationRecord("A", value, SourceKind.AI_EXTRACTION)
        assert record.confidence_score == config.default_ai_confidence

    assert MedicationRecord("A", "0.8", SourceKind.AI_EXTRACTION).confidence_score == 0.8
    restored = MedicationRecord.from_dict({"brand_name": "A", "confidence_score": None})
    assert restored.confidence_score == config.default_ai_confidence


def test_record_from_dict_fills_usage_defaults():
    record = MedicationRecord.from_dict({
        "brand_name": "Advil",
        "confidence_score": 0.85,
        "source_kind": "text_catalog",
        "usage_instructions": {"dosage": "1 tablet", "route": ""},
    })

    assert record.source_kind == SourceKind.TEXT_CATALOG
    assert record.usage_instructions.dosage == "1 tablet"
    assert record.usage_instructions.route == "oral"
    assert record.usage_instructions.frequency == UsageInstructions().frequency


def test_record_serializes_to_json(ai_record):
    data = json.loads(json.dumps(ai_record.to_dict()))
    assert data["source_kind"] == "ai_extraction"
    assert MedicationRecord.from_dict(data) == ai_record


def test_degraded_and_brand_properties():
    degraded = MedicationRecord("  ", 0.1, SourceKind.DEGRADED)
    assert degraded.is_degraded
    assert not degraded.has_brand


def test_raw_signal_sufficiency():
    assert RawSignal(recognized_text="  abc  ").text_length == 3
    assert not RawSignal(recognized_text="abc").is_sufficient(10)
    assert RawSignal(recognized_text="0123456789").is_sufficient(10)
    assert RawSignal(barcode_code="123").is_sufficient(10)
    assert not RawSignal(barcode_code="   ").has_barcode


def test_risk_assessment_to_dict():
    assessment = RiskAssessment(warnings=["check"], risk_flags=[RiskFlag.LOW_CONFIDENCE])
    assert assessment.to_dict() == {
        "warnings": ["check"],
        "risk_flags": ["LOW_CONFIDENCE"],
        "blocks_presentation": False,
        "show_warnings": True,
    }


def test_locale_normalization():
    assert normalize_language(" EN-us ") == "en-us"
    assert normalize_language(None) == "en"
    assert normalize_language("", default="az") == "az"
    assert normalize_language("x" * 20) == "x" * 10
    assert normalize_region(" az") == "AZ"
    assert normalize_region(None) == "US"
    assert normalize_region("global-market") == "GLOBA"


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "resolved %s", ("Advil",), None)
    record.attempt_id = "abc123"

    data = json.loads(JsonFormatter().format(record))

    assert data["message"] == "resolved Advil"
    assert data["extra"] == {"attempt_id": "abc123"}
