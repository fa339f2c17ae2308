# ============================================================================
# src/medication_identification/resolvers/__init__.py
# ============================================================================
"""
Deterministic catalog resolution: barcode first, then text.
"""

from .barcode_resolver import resolve_by_barcode
from .text_matcher import resolve_by_text, find_text_match, extract_dosage, MatchRule, TextMatch
from .record_builder import build_catalog_record
