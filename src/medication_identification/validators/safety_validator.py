# ============================================================================
# src/medication_identification/validators/safety_validator.py
# ============================================================================
"""
Confidence & Safety Validator

Pure function of (record, config). Warn often, block rarely:
- HIGH_RISK_MED: keyword in brand + generic name, regardless of confidence
- LOW_CONFIDENCE: confidence < 0.70 (warnings shown)
- CRITICAL_CONFIDENCE: confidence < 0.50 (stronger warning added)
- Blocked only when there is no usable name: empty brand, or a degraded
  synthesis at the lowest confidence tier
Thresholds are strict: exactly 0.70 and exactly 0.50 are not "below".
"""

import logging
from typing import Optional

from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, RiskAssessment, RiskFlag

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_WARNING = (
    "This identification may be inaccurate. Check the package and confirm "
    "with a pharmacist before taking it."
)
CRITICAL_CONFIDENCE_WARNING = (
    "Identification confidence is very low. Do not rely on this result "
    "without professional confirmation."
)


def find_high_risk_keyword(record: MedicationRecord, config: PipelineConfig) -> Optional[str]:
    """First high-risk keyword found in the lowercased brand + generic name."""
    haystack = f"{record.brand_name or ''} {record.generic_name or ''}".lower()
    for keyword in config.high_risk_keywords:
        if keyword and keyword in haystack:
            return keyword
    return None


def validate(record: MedicationRecord, config: Optional[PipelineConfig] = None) -> RiskAssessment:
    """
    Compute risk flags, presentation warnings and the blocking decision.

    Args:
        record: Resolved record from any source
        config: Thresholds and keyword lists (defaults to settings)

    Returns:
        RiskAssessment
    """
    config = config or get_pipeline_config()
    assessment = RiskAssessment()
    confidence = record.confidence_score

    keyword = find_high_risk_keyword(record, config)
    if keyword:
        assessment.risk_flags.append(RiskFlag.HIGH_RISK_MED)
        logger.info(f"High-risk medication '{keyword}' in {record.brand_name}")

    if confidence < config.low_confidence_threshold:
        assessment.risk_flags.append(RiskFlag.LOW_CONFIDENCE)
        assessment.warnings.append(LOW_CONFIDENCE_WARNING)

    if confidence < config.critical_confidence_threshold:
        assessment.risk_flags.append(RiskFlag.CRITICAL_CONFIDENCE)
        assessment.warnings.append(CRITICAL_CONFIDENCE_WARNING)

    no_brand = not record.has_brand
    unestablished = record.is_degraded and confidence <= config.degraded_confidence
    assessment.blocks_presentation = no_brand or unestablished

    logger.debug(
        f"Validated {record.brand_name!r}: confidence={confidence:.2f}, "
        f"flags={assessment.flag_values()}, blocked={assessment.blocks_presentation}"
    )
    return assessment
