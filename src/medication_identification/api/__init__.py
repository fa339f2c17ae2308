# ============================================================================
# src/medication_identification/api/__init__.py
# ============================================================================
"""
HTTP API (FastAPI).
"""

from .app import create_app
