# ============================================================================
# src/medication_identification/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the medication identification pipeline.

Catalog lookups never raise; a miss is a normal return value.
Only the capture devices and the AI fallback raise errors that reach the
orchestrator, and only some of those are surfaced to the user.
"""

from typing import Optional


class MedicationPipelineError(Exception):
    """Base exception for all medication pipeline errors."""
    pass


class DeviceError(MedicationPipelineError):
    """Camera/gallery permission or hardware failure."""

    def __init__(self, message: str, hint: str = "Check that camera access is allowed and try again."):
        super().__init__(message)
        self.hint = hint


class OCRError(MedicationPipelineError):
    """Text recognition failed or the OCR engine could not be initialized."""

    def __init__(self, message: str, hint: str = "Make sure the label is well lit and in focus, then retake the photo."):
        super().__init__(message)
        self.hint = hint


class ExtractionError(MedicationPipelineError):
    """The external model call could not be completed (network/auth/quota)."""

    def __init__(self, message: str, retryable: bool = True, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.retryable = retryable
        self.cause = cause


class ExtractionTimeoutError(ExtractionError):
    """The external model call exceeded the caller-side timeout."""

    def __init__(self, message: str, timeout: float):
        super().__init__(message, retryable=True)
        self.timeout = timeout


class ParseError(MedicationPipelineError):
    """Model response could not be parsed. Always absorbed into a Degraded record."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class InsufficientInputError(MedicationPipelineError):
    """Nothing worth analyzing was captured. Informational, not a failure."""

    def __init__(self, message: str = "Not enough readable text or barcode to identify a medication.",
                 text_length: int = 0):
        super().__init__(message)
        self.text_length = text_length


class RecorderError(MedicationPipelineError):
    """Session or extraction write failed."""
    pass


class ConfigurationError(MedicationPipelineError):
    """Invalid configuration."""
    pass
