# ============================================================================
# src/medication_identification/core/context/session.py
# ============================================================================
"""
Persisted records
- ScanSession: one capture attempt, created before any AI call
- ExtractionRecord: immutable snapshot of a resolved record
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .medication_record import MedicationRecord

@dataclass
class ScanSession:
    id: str
    user_id: str
    language: str
    region: str
    barcode_value: Optional[str] = None
    captured_at: datetime = field(default_factory=datetime.now)

    # Only field that changes after creation
    extraction_id: Optional[str] = None


@dataclass(frozen=True)
class ExtractionRecord:
    id: str
    user_id: str
    record: MedicationRecord
    quality_score: float
    risk_flags: List[str]
    model_version: str
    created_at: datetime
