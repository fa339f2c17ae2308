# ============================================================================
# src/medication_identification/extractors/factory.py
# ============================================================================
"""
Picks the AI fallback for this process: the remote extraction endpoint
when REMOTE_EXTRACTION_URL is set, otherwise a direct model client.
"""

import logging
from typing import Optional

from .ai_extractor import AIExtractor
from .base import BaseExtractor
from .remote_extractor import RemoteExtractor
from ..config import llm_settings, LLMSettings
from ..core.config import PipelineConfig

logger = logging.getLogger(__name__)


def create_extractor(
    config: Optional[PipelineConfig] = None,
    settings: Optional[LLMSettings] = None,
) -> BaseExtractor:
    settings = settings or llm_settings
    if settings.REMOTE_EXTRACTION_URL:
        logger.info(f"Using remote extraction endpoint {settings.REMOTE_EXTRACTION_URL}")
        return RemoteExtractor(settings.REMOTE_EXTRACTION_URL, config=config)
    return AIExtractor(config=config)
