# ============================================================================
# src/medication_identification/capture/__init__.py
# ============================================================================
"""
Capture orchestration and device collaborators.

The Tesseract and pyzbar adapters are imported from their own modules so
that the orchestrator can run with fakes on machines without the native
libraries installed.
"""

from .collaborators import (
    CaptureDevice,
    OCREngine,
    BarcodeDecoder,
    OCRResult,
    DecodedBarcode,
)
from .orchestrator import (
    CaptureOrchestrator,
    CaptureStage,
    CaptureOutcome,
    CaptureResult,
)
