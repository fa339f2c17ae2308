# ============================================================================
# src/medication_identification/config/thresholds_config.py
# ============================================================================
"""
Confidence Thresholds & Keyword Lists
- Fixed confidences per resolution source
- Two-tier warning thresholds
- Input sufficiency
- High-risk and common-generic keyword lists
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


DEFAULT_HIGH_RISK_KEYWORDS = [
    "insulin",
    "warfarin",
    "digoxin",
    "lithium",
    "methotrexate",
    "heparin",
    "amiodarone",
    "tacrolimus",
    "cyclophosphamide",
    "chemotherapy",
]

DEFAULT_COMMON_GENERIC_KEYWORDS = [
    "paracetamol",
    "parasetamol",
    "acetaminophen",
    "ibuprofen",
    "aspirin",
    "acetylsalicylic",
    "asetilsalisil",
]


class ThresholdSettings(BaseSettings):
    BARCODE_MATCH_CONFIDENCE: float = Field(
        default=0.95,
        ge=0.0, le=1.0,
        description="Confidence assigned to an exact barcode catalog hit"
    )
    TEXT_MATCH_CONFIDENCE: float = Field(
        default=0.85,
        ge=0.0, le=1.0,
        description="Confidence assigned to a text catalog hit"
    )
    LOW_CONFIDENCE_THRESHOLD: float = Field(
        default=0.70,
        ge=0.0, le=1.0,
        description="Below this confidence, show warnings and add LOW_CONFIDENCE"
    )
    CRITICAL_CONFIDENCE_THRESHOLD: float = Field(
        default=0.50,
        ge=0.0, le=1.0,
        description="Below this confidence, add the stronger CRITICAL_CONFIDENCE flag"
    )
    DEGRADED_CONFIDENCE: float = Field(
        default=0.10,
        ge=0.0, le=1.0,
        description="Confidence of a synthesized record. At or below this with no brand, presentation is blocked."
    )
    DEFAULT_AI_CONFIDENCE: float = Field(
        default=0.50,
        ge=0.0, le=1.0,
        description="Used when the model reports a non-numeric confidence"
    )
    MIN_TEXT_LENGTH: int = Field(
        default=10,
        ge=0,
        description="Minimum stripped OCR text length before the AI fallback is worth calling"
    )
    HIGH_RISK_KEYWORDS: List[str] = Field(
        default_factory=lambda: list(DEFAULT_HIGH_RISK_KEYWORDS),
        description="Name fragments that mark a narrow-therapeutic-index or high-alert drug"
    )
    COMMON_GENERIC_KEYWORDS: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COMMON_GENERIC_KEYWORDS),
        description="Allow-list that enables the dosage-pattern text heuristic"
    )

threshold_settings = ThresholdSettings()
