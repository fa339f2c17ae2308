# ============================================================================
# src/medication_identification/core/config.py
# ============================================================================
"""
Centralized Pipeline Configuration

Freezes the pydantic settings into one immutable object that is injected
into the validator, the AI extractor and the capture orchestrator, so
thresholds can be overridden per test or per region without touching
module globals.

Usage:
    from medication_identification.core.config import get_pipeline_config

    config = get_pipeline_config()
    strict = config.with_overrides(low_confidence_threshold=0.8)
"""

from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

from ..config import (
    base_settings,
    llm_settings,
    pipeline_settings,
    threshold_settings,
    BaseSettingsConfig,
    LLMSettings,
    PipelineSettings,
    ThresholdSettings,
)
from ..utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable thresholds, keyword lists and policies for one pipeline."""

    # Fixed confidences per source
    barcode_match_confidence: float = 0.95
    text_match_confidence: float = 0.85
    degraded_confidence: float = 0.10
    default_ai_confidence: float = 0.50

    # Two-tier warning thresholds (strict "below")
    low_confidence_threshold: float = 0.70
    critical_confidence_threshold: float = 0.50

    min_text_length: int = 10
    high_risk_keywords: Tuple[str, ...] = field(default_factory=tuple)
    common_generic_keywords: Tuple[str, ...] = field(default_factory=tuple)

    # AI fallback
    ai_timeout_seconds: float = 30.0
    repair_malformed_json: bool = False

    # Orchestrator policies
    extraction_error_policy: str = "degrade"
    ocr_on_barcode_hit: bool = True
    keep_barcode_result_on_ocr_failure: bool = False
    parallel_device_stages: bool = True
    restrict_catalog_to_region: bool = False
    default_language: str = "en"
    default_region: str = "US"

    def __post_init__(self):
        if self.critical_confidence_threshold > self.low_confidence_threshold:
            raise ConfigurationError(
                "critical_confidence_threshold must not exceed low_confidence_threshold"
            )
        if self.degraded_confidence > self.critical_confidence_threshold:
            raise ConfigurationError(
                "degraded_confidence must not exceed critical_confidence_threshold"
            )
        if self.extraction_error_policy not in ("degrade", "surface"):
            raise ConfigurationError(
                f"Unknown extraction_error_policy: {self.extraction_error_policy}"
            )
        # Keyword matching is always lowercase
        object.__setattr__(
            self, "high_risk_keywords",
            tuple(k.lower() for k in self.high_risk_keywords)
        )
        object.__setattr__(
            self, "common_generic_keywords",
            tuple(k.lower() for k in self.common_generic_keywords)
        )

    @property
    def degrade_on_extraction_error(self) -> bool:
        return self.extraction_error_policy == "degrade"

    @classmethod
    def from_settings(
        cls,
        thresholds: ThresholdSettings = None,
        pipeline: PipelineSettings = None,
        llm: LLMSettings = None,
    ) -> "PipelineConfig":
        """Build from the pydantic settings (env/.env aware)."""
        thresholds = thresholds or threshold_settings
        pipeline = pipeline or pipeline_settings
        llm = llm or llm_settings

        return cls(
            barcode_match_confidence=thresholds.BARCODE_MATCH_CONFIDENCE,
            text_match_confidence=thresholds.TEXT_MATCH_CONFIDENCE,
            degraded_confidence=thresholds.DEGRADED_CONFIDENCE,
            default_ai_confidence=thresholds.DEFAULT_AI_CONFIDENCE,
            low_confidence_threshold=thresholds.LOW_CONFIDENCE_THRESHOLD,
            critical_confidence_threshold=thresholds.CRITICAL_CONFIDENCE_THRESHOLD,
            min_text_length=thresholds.MIN_TEXT_LENGTH,
            high_risk_keywords=tuple(thresholds.HIGH_RISK_KEYWORDS),
            common_generic_keywords=tuple(thresholds.COMMON_GENERIC_KEYWORDS),
            ai_timeout_seconds=llm.AI_TIMEOUT_SECONDS,
            repair_malformed_json=llm.AI_REPAIR_MALFORMED_JSON,
            extraction_error_policy=pipeline.EXTRACTION_ERROR_POLICY,
            ocr_on_barcode_hit=pipeline.OCR_ON_BARCODE_HIT,
            keep_barcode_result_on_ocr_failure=pipeline.KEEP_BARCODE_RESULT_ON_OCR_FAILURE,
            parallel_device_stages=pipeline.PARALLEL_DEVICE_STAGES,
            restrict_catalog_to_region=pipeline.RESTRICT_CATALOG_TO_REGION,
            default_language=pipeline.DEFAULT_LANGUAGE,
            default_region=pipeline.DEFAULT_REGION,
        )

    def with_overrides(self, **changes: Any) -> "PipelineConfig":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)


@lru_cache(maxsize=1)
def get_pipeline_config() -> PipelineConfig:
    """
    Get the process-wide pipeline configuration.

    Cached after first call. Use reload_config() to re-read settings.
    """
    return PipelineConfig.from_settings()


def get_llm_config(settings: LLMSettings = None) -> Dict[str, Any]:
    """
    Get the language model client configuration as a dict.

    This is the shape create_client() merges with caller overrides.
    """
    settings = settings or llm_settings
    return {
        'backend': settings.LLM_BACKEND,
        'openai_api_key': settings.OPENAI_API_KEY,
        'openai_model': settings.OPENAI_MODEL,
        'openai_base_url': settings.OPENAI_BASE_URL,
        'ollama_host': settings.OLLAMA_HOST,
        'ollama_model': settings.OLLAMA_MODEL,
        'max_tokens': settings.LLM_MAX_TOKENS,
        'temperature': settings.LLM_TEMPERATURE,
        'request_timeout': settings.AI_TIMEOUT_SECONDS,
    }


def get_session_db_path(settings: BaseSettingsConfig = None) -> Path:
    """SQLite path for the session/extraction recorder."""
    settings = settings or base_settings
    return Path(settings.SESSION_DB_PATH)


def reload_config() -> PipelineConfig:
    """Clear the cache and rebuild from the current settings objects."""
    get_pipeline_config.cache_clear()
    return get_pipeline_config()
