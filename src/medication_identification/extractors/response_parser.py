# ============================================================================
# src/medication_identification/extractors/response_parser.py
# ============================================================================
"""
Model Response Parsing

Turns raw model output into a validated payload dict, or raises ParseError.
ParseError never leaves the extraction layer; the extractor converts it
into a Degraded record.

Order:
1. Empty payload -> ParseError
2. Strip ```json ... ``` / ``` ... ``` fences
3. Strict json.loads (json_repair only when explicitly enabled)
4. Top-level must be an object and must not be {"error": ...}
5. Lenient field coercion via AIMedicationPayload
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from json_repair import repair_json
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.context.medication_record import coerce_confidence
from ..utils.exceptions import ParseError

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapping the whole response, if present."""
    stripped = (text or "").strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)
    text = str(value).strip()
    return text or None


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [str(value)]


class UsageInstructionsPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    timing: Optional[str] = None
    route: Optional[str] = None
    special_instructions: List[str] = Field(default_factory=list)

    @field_validator("dosage", "frequency", "duration", "timing", "route", mode="before")
    @classmethod
    def _text(cls, value):
        return _as_text(value)

    @field_validator("special_instructions", mode="before")
    @classmethod
    def _list(cls, value):
        return _as_text_list(value)


class AIMedicationPayload(BaseModel):
    """MedicationRecord shape as the model emits it. Unknown keys ignored."""

    model_config = ConfigDict(extra="ignore")

    brand_name: Optional[str] = None
    generic_name: Optional[str] = None
    strength: Optional[str] = None
    form: Optional[str] = None
    manufacturer: Optional[str] = None
    confidence_score: Optional[float] = None

    active_ingredients: List[str] = Field(default_factory=list)
    indications: List[str] = Field(default_factory=list)
    contraindications: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    side_effects: List[str] = Field(default_factory=list)
    drug_interactions: List[str] = Field(default_factory=list)

    usage_instructions: UsageInstructionsPayload = Field(default_factory=UsageInstructionsPayload)
    storage_instructions: Optional[str] = None
    pregnancy_safety: Optional[str] = None
    age_restrictions: Optional[str] = None
    expiry_date: Optional[str] = None
    country_code: Optional[str] = None

    @field_validator(
        "brand_name", "generic_name", "strength", "form", "manufacturer",
        "storage_instructions", "pregnancy_safety", "age_restrictions",
        "expiry_date", "country_code",
        mode="before",
    )
    @classmethod
    def _text(cls, value):
        return _as_text(value)

    @field_validator(
        "active_ingredients", "indications", "contraindications",
        "warnings", "side_effects", "drug_interactions",
        mode="before",
    )
    @classmethod
    def _list(cls, value):
        return _as_text_list(value)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _confidence(cls, value):
        return coerce_confidence(value)

    @field_validator("usage_instructions", mode="before")
    @classmethod
    def _usage(cls, value):
        return value if isinstance(value, dict) else {}


def _loads(text: str, repair: bool) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        if not repair:
            raise ParseError(f"Response is not valid JSON: {e}", raw_text=text) from e

    repaired = repair_json(text, return_objects=True)
    if isinstance(repaired, dict) and repaired:
        logger.debug("json_repair recovered a malformed model response")
        return repaired
    raise ParseError("Response is not valid JSON and could not be repaired", raw_text=text)


def parse_model_response(raw_text: Optional[str], repair: bool = False) -> AIMedicationPayload:
    """
    Parse raw model output into a payload.

    Args:
        raw_text: Model output as returned by the backend
        repair: Try json_repair when strict parsing fails

    Returns:
        AIMedicationPayload

    Raises:
        ParseError: Empty, non-JSON, non-object, or {"error": ...} response
    """
    if raw_text is None or not raw_text.strip():
        raise ParseError("Empty model response")

    text = strip_code_fences(raw_text)
    if not text:
        raise ParseError("Model response contained only a code fence", raw_text=raw_text)

    return validate_payload(_loads(text, repair), raw_text=raw_text)


def validate_payload(data: Any, raw_text: str = "") -> AIMedicationPayload:
    """
    Check an already decoded response and coerce it into a payload.

    Raises:
        ParseError: Non-object, {"error": ...} object, or unusable fields
    """
    if not isinstance(data, dict):
        raise ParseError(
            f"Expected a JSON object, got {type(data).__name__}", raw_text=raw_text
        )

    if "error" in data and not data.get("brand_name"):
        raise ParseError(f"Model reported no medication: {data.get('error')}", raw_text=raw_text)

    try:
        return AIMedicationPayload.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Response does not match the record shape: {e}", raw_text=raw_text) from e
