# ============================================================================
# FILE: tests/unit/test_configuration.py
# ============================================================================
"""
Unit tests for settings and the frozen pipeline config
"""

import dataclasses

import pytest

from medication_identification.config import (
    LLMSettings,
    PipelineSettings,
    ThresholdSettings,
)
from medication_identification.core.config import (
    PipelineConfig,
    get_llm_config,
    get_pipeline_config,
    reload_config,
)
from medication_identification.utils.exceptions import ConfigurationError


def test_default_thresholds():
    """Shipped thresholds and keyword lists"""
    settings = ThresholdSettings()

    assert settings.BARCODE_MATCH_CONFIDENCE == 0.95
    assert settings.TEXT_MATCH_CONFIDENCE == 0.85
    assert settings.LOW_CONFIDENCE_THRESHOLD == 0.70
    assert settings.CRITICAL_CONFIDENCE_THRESHOLD == 0.50
    assert settings.DEGRADED_CONFIDENCE == 0.10
    assert settings.DEFAULT_AI_CONFIDENCE == 0.50
    assert settings.MIN_TEXT_LENGTH == 10
    assert "warfarin" in settings.HIGH_RISK_KEYWORDS
    assert "paracetamol" in settings.COMMON_GENERIC_KEYWORDS


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("LOW_CONFIDENCE_THRESHOLD", "0.8")
    monkeypatch.setenv("EXTRACTION_ERROR_POLICY", "surface")
    monkeypatch.setenv("HIGH_RISK_KEYWORDS", '["Insulin", "Opioid"]')

    config = PipelineConfig.from_settings(
        thresholds=ThresholdSettings(),
        pipeline=PipelineSettings(),
        llm=LLMSettings(),
    )

    assert config.low_confidence_threshold == 0.8
    assert config.degrade_on_extraction_error is False
    assert config.high_risk_keywords == ("insulin", "opioid")


def test_settings_reject_out_of_range(monkeypatch):
    monkeypatch.setenv("BARCODE_MATCH_CONFIDENCE", "1.5")
    with pytest.raises(ValueError):
        ThresholdSettings()


def test_pipeline_config_is_frozen(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.low_confidence_threshold = 0.1


def test_with_overrides_returns_copy(config):
    strict = config.with_overrides(low_confidence_threshold=0.8)

    assert strict.low_confidence_threshold == 0.8
    assert config.low_confidence_threshold == 0.70
    assert strict.high_risk_keywords == config.high_risk_keywords


def test_inconsistent_thresholds_are_rejected(config):
    with pytest.raises(ConfigurationError):
        config.with_overrides(critical_confidence_threshold=0.9)
    with pytest.raises(ConfigurationError):
        config.with_overrides(degraded_confidence=0.6)
    with pytest.raises(ConfigurationError):
        config.with_overrides(extraction_error_policy="retry")


def test_get_pipeline_config_is_cached():
    assert get_pipeline_config() is get_pipeline_config()
    assert reload_config() is get_pipeline_config()


def test_llm_config_shape():
    llm = get_llm_config(LLMSettings(OPENAI_MODEL="gpt-4o", AI_TIMEOUT_SECONDS=12))

    assert llm["openai_model"] == "gpt-4o"
    assert llm["request_timeout"] == 12
    assert llm["backend"] in ("openai", "ollama")
