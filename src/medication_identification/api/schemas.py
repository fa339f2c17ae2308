# ============================================================================
# src/medication_identification/api/schemas.py
# ============================================================================
"""
Request / response models for the extraction endpoint.

The request accepts both snake_case and the mobile client's camelCase
session key ("sessionId").
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.locale import normalize_language, normalize_region

MAX_TEXT_LENGTH = 5000


class ExtractMedicationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(
        default=None,
        max_length=MAX_TEXT_LENGTH,
        description="Text recognized on the package",
        examples=["ADVIL Ibuprofen 200mg tablets"],
    )
    barcode: Optional[str] = Field(
        default=None,
        description="Decoded barcode, if any",
        examples=["5000159461788"],
    )
    language: Optional[str] = Field(default=None, description="Answer language, e.g. 'en'")
    region: Optional[str] = Field(default=None, description="Market region, e.g. 'US'")
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    @field_validator("barcode", "session_id")
    @classmethod
    def strip_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("language")
    @classmethod
    def normalize_language_code(cls, value: Optional[str]) -> str:
        return normalize_language(value)

    @field_validator("region")
    @classmethod
    def normalize_region_code(cls, value: Optional[str]) -> str:
        return normalize_region(value)

    @model_validator(mode="after")
    def require_text_or_barcode(self):
        """At least one of text / barcode must carry something."""
        if not (self.text and self.text.strip()) and not self.barcode:
            raise ValueError("Either 'text' or 'barcode' is required")
        return self


class ExtractMedicationResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    assessment: Dict[str, Any]
    source: str
    region: str
    confidence_score: float
    extraction_id: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_kind: str
    retryable: bool = False
    region: Optional[str] = None


class CatalogEntryResponse(BaseModel):
    product_name: str
    generic_name: str
    manufacturer: str
    strength: str
    form: str
    country: str
    barcode: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    catalog_entries: int
    backend: str


class ScanResponse(BaseModel):
    """Full capture attempt result for POST /api/scan."""
    attempt_id: str
    outcome: str
    record: Optional[Dict[str, Any]] = None
    assessment: Optional[Dict[str, Any]] = None
    blocked: bool
    session_id: Optional[str] = None
    extraction_id: Optional[str] = None
    barcode: Optional[str] = None
    ocr_text: Optional[str] = None
    ocr_confidence: float = 0.0
    message: str = ""
    error_kind: Optional[str] = None
    retryable: bool = False
    stages: List[str] = Field(default_factory=list)
