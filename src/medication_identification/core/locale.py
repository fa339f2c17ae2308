# ============================================================================
# src/medication_identification/core/locale.py
# ============================================================================
"""
Language / region normalization shared by the orchestrator and the API.
"""

from typing import Optional

MAX_LANGUAGE_LENGTH = 10
MAX_REGION_LENGTH = 5


def normalize_language(language: Optional[str], default: str = "en") -> str:
    """'EN-us ' -> 'en-us'; empty -> default"""
    value = (language or "").strip().lower()
    return (value or default.lower())[:MAX_LANGUAGE_LENGTH]


def normalize_region(region: Optional[str], default: str = "US") -> str:
    """' az' -> 'AZ'; empty -> default"""
    value = (region or "").strip().upper()
    return (value or default.upper())[:MAX_REGION_LENGTH]
