# ============================================================================
# src/medication_identification/config/pipeline_config.py
# ============================================================================
"""
Capture Pipeline Policy Settings
- Extraction error policy (degrade vs surface)
- OCR after a barcode hit
- OCR failure after a barcode hit (fatal unless configured)
- Concurrent device stages
- Regional catalog filtering
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class PipelineSettings(BaseSettings):
    EXTRACTION_ERROR_POLICY: Literal["degrade", "surface"] = Field(
        default="degrade",
        description="On AI call failure: 'degrade' to a synthesized record when text exists, or 'surface' a retryable error"
    )
    OCR_ON_BARCODE_HIT: bool = Field(
        default=True,
        description="Still run OCR when the barcode resolved the medication"
    )
    KEEP_BARCODE_RESULT_ON_OCR_FAILURE: bool = Field(
        default=False,
        description="Keep a barcode catalog hit when OCR fails instead of failing the attempt"
    )
    PARALLEL_DEVICE_STAGES: bool = Field(
        default=True,
        description="Run barcode decode and OCR concurrently on the captured image"
    )
    RESTRICT_CATALOG_TO_REGION: bool = Field(
        default=False,
        description="Only match catalog entries sold in the requested region"
    )
    DEFAULT_LANGUAGE: str = Field(
        default="en",
        description="Language used when the caller does not pass one"
    )
    DEFAULT_REGION: str = Field(
        default="US",
        description="Region used when the caller does not pass one"
    )

pipeline_settings = PipelineSettings()
