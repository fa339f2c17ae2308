# ============================================================================
# src/medication_identification/validators/__init__.py
# ============================================================================

from .safety_validator import validate, find_high_risk_keyword
