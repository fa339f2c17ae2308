# ============================================================================
# src/medication_identification/core/context/enums.py
# ============================================================================
"""
Pipeline Enums
- Resolution source
- Risk flags
"""

from enum import Enum

class SourceKind(str, Enum):
    BARCODE_CATALOG = "barcode_catalog"   # 0.95
    TEXT_CATALOG = "text_catalog"         # 0.85
    AI_EXTRACTION = "ai_extraction"       # model-reported
    DEGRADED = "degraded"                 # 0.10, synthesized

class RiskFlag(str, Enum):
    HIGH_RISK_MED = "HIGH_RISK_MED"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    CRITICAL_CONFIDENCE = "CRITICAL_CONFIDENCE"
