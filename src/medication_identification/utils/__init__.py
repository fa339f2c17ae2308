# ============================================================================
# src/medication_identification/utils/__init__.py
# ============================================================================
"""
Shared utilities: exceptions and logging helpers.
"""

from .exceptions import (
    MedicationPipelineError,
    DeviceError,
    OCRError,
    ExtractionError,
    ExtractionTimeoutError,
    ParseError,
    InsufficientInputError,
    RecorderError,
    ConfigurationError,
)
from .logging import setup_logging, JsonFormatter, LogAdapter, log_performance
