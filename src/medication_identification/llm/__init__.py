# ============================================================================
# src/medication_identification/llm/__init__.py
# ============================================================================
"""
Language model backends for the AI extraction fallback.
"""

from .base import BaseLLMClient, BackendType
from .client import create_client, clear_client_cache
from .prompts import build_extraction_prompt
