# ============================================================================
# src/medication_identification/extractors/__init__.py
# ============================================================================
"""
AI extraction fallback and its response handling.
"""

from .base import BaseExtractor
from .ai_extractor import (
    AIExtractor,
    build_degraded_record,
    record_from_payload,
    placeholder_brand,
    UNIDENTIFIED_BRAND,
)
from .remote_extractor import RemoteExtractor
from .factory import create_extractor
from .response_parser import AIMedicationPayload, parse_model_response, strip_code_fences
