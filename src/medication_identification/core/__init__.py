# ============================================================================
# src/medication_identification/core/__init__.py
# ============================================================================
"""
Core pipeline types: configuration, domain records, persistence.
"""

from .config import PipelineConfig, get_pipeline_config, get_llm_config, reload_config
from .context import (
    SourceKind,
    RiskFlag,
    MedicationRecord,
    UsageInstructions,
    RawSignal,
    RiskAssessment,
    ScanSession,
    ExtractionRecord,
)
from .locale import normalize_language, normalize_region
from .recorder import SessionRecorder, SQLiteSessionRecorder
