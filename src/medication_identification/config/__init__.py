# ============================================================================
# src/medication_identification/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .env import load_environment

load_environment()

from .base_config import base_settings, BaseSettingsConfig
from .thresholds_config import threshold_settings, ThresholdSettings
from .llm_config import llm_settings, LLMSettings
from .pipeline_config import pipeline_settings, PipelineSettings
from .logging_config import logging_settings, LoggingSettings
