# ============================================================================
# src/medication_identification/__init__.py
# ============================================================================
"""
Medication Identification Pipeline

Resolves a photo, barcode or recognized text into a confidence-scored
medication record: barcode catalog, then text catalog, then an AI
fallback, followed by a safety validation gate.
"""

__version__ = "0.1.0"
