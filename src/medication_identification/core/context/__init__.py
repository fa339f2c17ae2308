# ============================================================================
# src/medication_identification/core/context/__init__.py
# ============================================================================

from .enums import SourceKind, RiskFlag
from .medication_record import MedicationRecord, UsageInstructions
from .raw_signal import RawSignal
from .risk_assessment import RiskAssessment
from .session import ScanSession, ExtractionRecord
