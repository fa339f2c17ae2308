# ============================================================================
# FILE: tests/unit/test_safety_validator.py
# ============================================================================
"""
Unit tests for the confidence & safety validator
"""

import pytest

from medication_identification.core.context import MedicationRecord, RiskFlag, SourceKind
from medication_identification.validators.safety_validator import (
    CRITICAL_CONFIDENCE_WARNING,
    LOW_CONFIDENCE_WARNING,
    find_high_risk_keyword,
    validate,
)


def _record(confidence, brand="Xarelto", generic="Rivaroxaban", source=SourceKind.AI_EXTRACTION):
    return MedicationRecord(
        brand_name=brand,
        generic_name=generic,
        confidence_score=confidence,
        source_kind=source,
    )


# ============================================================================
# CONFIDENCE TIERS
# ============================================================================

def test_confident_record_has_no_warnings(config):
    assessment = validate(_record(0.75), config)

    assert assessment.warnings == []
    assert assessment.risk_flags == []
    assert assessment.blocks_presentation is False
    assert assessment.show_warnings is False


def test_low_confidence_warns_without_blocking(config):
    """0.65: warnings shown, not blocked"""
    assessment = validate(_record(0.65), config)

    assert assessment.has_flag(RiskFlag.LOW_CONFIDENCE)
    assert not assessment.has_flag(RiskFlag.CRITICAL_CONFIDENCE)
    assert assessment.warnings == [LOW_CONFIDENCE_WARNING]
    assert assessment.show_warnings is True
    assert assessment.blocks_presentation is False


def test_critical_confidence_adds_stronger_warning(config):
    """0.45: both tiers apply"""
    assessment = validate(_record(0.45), config)

    assert assessment.flag_values() == ["LOW_CONFIDENCE", "CRITICAL_CONFIDENCE"]
    assert assessment.warnings == [LOW_CONFIDENCE_WARNING, CRITICAL_CONFIDENCE_WARNING]
    assert assessment.blocks_presentation is False


@pytest.mark.parametrize("confidence,low,critical", [
    (0.70, False, False),
    (0.69, True, False),
    (0.50, True, False),
    (0.49, True, True),
])
def test_thresholds_are_strict(config, confidence, low, critical):
    """Exactly 0.70 and exactly 0.50 are not 'below'"""
    assessment = validate(_record(confidence), config)

    assert assessment.has_flag(RiskFlag.LOW_CONFIDENCE) is low
    assert assessment.has_flag(RiskFlag.CRITICAL_CONFIDENCE) is critical


def test_thresholds_come_from_config(config):
    strict = config.with_overrides(low_confidence_threshold=0.9)
    assert validate(_record(0.85), strict).has_flag(RiskFlag.LOW_CONFIDENCE)
    assert not validate(_record(0.85), config).has_flag(RiskFlag.LOW_CONFIDENCE)


# ============================================================================
# HIGH-RISK MEDICATIONS
# ============================================================================

def test_warfarin_is_high_risk_at_any_confidence(config):
    for confidence in (0.95, 0.85, 0.3):
        record = _record(confidence, brand="Coumadin", generic="Warfarin")
        assert validate(record, config).has_flag(RiskFlag.HIGH_RISK_MED)


def test_high_risk_alone_does_not_warn(config):
    record = _record(0.95, brand="Coumadin", generic="Warfarin", source=SourceKind.BARCODE_CATALOG)
    assessment = validate(record, config)

    assert assessment.flag_values() == ["HIGH_RISK_MED"]
    assert assessment.warnings == []
    assert assessment.blocks_presentation is False


def test_high_risk_keyword_in_brand_name(config):
    record = _record(0.8, brand="Insulin Lispro Sanofi", generic=None)
    assert find_high_risk_keyword(record, config) == "insulin"


def test_no_high_risk_keyword(config):
    assert find_high_risk_keyword(_record(0.8), config) is None


# ============================================================================
# BLOCKING
# ============================================================================

def test_degraded_record_at_floor_is_blocked(config):
    assessment = validate(_record(0.1, brand="xyz123 unreadable blur", source=SourceKind.DEGRADED), config)

    assert assessment.blocks_presentation is True
    assert assessment.has_flag(RiskFlag.CRITICAL_CONFIDENCE)


def test_empty_brand_is_blocked(config):
    assert validate(_record(0.9, brand="  "), config).blocks_presentation is True


def test_low_confidence_ai_record_is_not_blocked(config):
    """Warn often, block rarely"""
    assert validate(_record(0.1), config).blocks_presentation is False
