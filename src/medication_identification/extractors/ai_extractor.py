# ============================================================================
# src/medication_identification/extractors/ai_extractor.py
# ============================================================================
"""
AI Extraction Fallback

Used only after both catalog paths miss. Enforces its own timeout,
never retries, and never lets a parse failure escape: unparseable output
becomes a Degraded record.

Usage:
    extractor = AIExtractor()
    record = await extractor.extract("... Xarelto 20 mg ...", language="en", region="US")
"""

import asyncio
import logging
import re
from typing import Optional

from .base import BaseExtractor
from .response_parser import AIMedicationPayload, parse_model_response
from ..constants import drug_reference
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, RawSignal, SourceKind, UsageInstructions
from ..llm.base import BaseLLMClient
from ..llm.client import create_client
from ..llm.prompts import build_extraction_prompt
from ..utils.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    InsufficientInputError,
    ParseError,
)

logger = logging.getLogger(__name__)

UNIDENTIFIED_BRAND = "Unidentified Medication"
DEGRADED_BRAND_MAX_LENGTH = 40

_WHITESPACE = re.compile(r"\s+")


def placeholder_brand(barcode: Optional[str] = None) -> str:
    if barcode and barcode.strip():
        return f"{UNIDENTIFIED_BRAND} ({barcode.strip()})"
    return UNIDENTIFIED_BRAND


def degraded_brand(text: Optional[str]) -> str:
    """Truncated, whitespace-collapsed text prefix; placeholder when there is no text."""
    prefix = _WHITESPACE.sub(" ", text or "").strip()
    if not prefix:
        return UNIDENTIFIED_BRAND
    if len(prefix) > DEGRADED_BRAND_MAX_LENGTH:
        return prefix[:DEGRADED_BRAND_MAX_LENGTH].rstrip() + "..."
    return prefix


def build_degraded_record(
    text: Optional[str],
    barcode: Optional[str] = None,
    region: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
) -> MedicationRecord:
    """
    Synthesize a record when no trustworthy source produced one.

    Text too short to be sufficient on its own does not name the record;
    a barcode-only capture gets the placeholder brand.
    """
    config = config or get_pipeline_config()
    signal = RawSignal(barcode_code=barcode, recognized_text=text)
    if signal.has_barcode and signal.text_length < config.min_text_length:
        brand = placeholder_brand(barcode)
    else:
        brand = degraded_brand(text)

    return MedicationRecord(
        brand_name=brand,
        confidence_score=config.degraded_confidence,
        source_kind=SourceKind.DEGRADED,
        barcode=barcode.strip() if barcode and barcode.strip() else None,
        warnings=list(drug_reference.GENERIC_SAFETY_WARNINGS),
        usage_instructions=UsageInstructions(
            special_instructions=list(drug_reference.GENERIC_SAFETY_INSTRUCTIONS),
        ),
        country_code=region.upper() if region else None,
        attribution="Unverified: automatic identification failed",
    )


def record_from_payload(
    payload: AIMedicationPayload,
    barcode: Optional[str] = None,
    region: Optional[str] = None,
    model_version: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
) -> MedicationRecord:
    """
    Apply post-parse rules and build the record.

    - non-numeric confidence -> DEFAULT_AI_CONFIDENCE
    - numeric confidence clamped into [0, 1]
    - missing brand -> placeholder and confidence clamped to DEGRADED_CONFIDENCE
    """
    config = config or get_pipeline_config()

    confidence = payload.confidence_score
    if confidence is None:
        confidence = config.default_ai_confidence
    confidence = max(0.0, min(1.0, confidence))

    brand = payload.brand_name
    if not brand:
        brand = placeholder_brand(barcode)
        confidence = min(confidence, config.degraded_confidence)

    active_ingredients = payload.active_ingredients
    if not active_ingredients and payload.generic_name:
        active_ingredients = [payload.generic_name]

    usage = payload.usage_instructions
    defaults = UsageInstructions()

    return MedicationRecord(
        brand_name=brand,
        confidence_score=confidence,
        source_kind=SourceKind.AI_EXTRACTION,
        generic_name=payload.generic_name,
        strength=payload.strength,
        form=payload.form,
        manufacturer=payload.manufacturer,
        barcode=barcode.strip() if barcode and barcode.strip() else None,
        active_ingredients=active_ingredients,
        indications=payload.indications,
        contraindications=payload.contraindications,
        warnings=payload.warnings,
        side_effects=payload.side_effects,
        drug_interactions=payload.drug_interactions,
        usage_instructions=UsageInstructions(
            dosage=usage.dosage or defaults.dosage,
            frequency=usage.frequency or defaults.frequency,
            duration=usage.duration or defaults.duration,
            timing=usage.timing or defaults.timing,
            route=usage.route or defaults.route,
            special_instructions=usage.special_instructions,
        ),
        storage_instructions=payload.storage_instructions or "Store as directed",
        pregnancy_safety=payload.pregnancy_safety,
        age_restrictions=payload.age_restrictions,
        expiry_date=payload.expiry_date,
        country_code=payload.country_code or (region.upper() if region else None),
        attribution=f"AI extraction ({model_version})" if model_version else "AI extraction",
    )


class AIExtractor(BaseExtractor):
    """
    Language-model extraction with a caller-side timeout.

    Args:
        client: Backend client (defaults to create_client() from settings)
        config: Pipeline config (timeout, thresholds, repair flag)
    """

    def __init__(
        self,
        client: Optional[BaseLLMClient] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.config = config or get_pipeline_config()
        self._client = client
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def client(self) -> BaseLLMClient:
        """Lazy so that a process without LLM settings can still use the catalog."""
        if self._client is None:
            self._client = create_client()
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.close()

    @property
    def model_version(self) -> str:
        return f"{self.client.backend_type.value}:{self.client.model_name}"

    async def extract(
        self,
        text: Optional[str],
        barcode: Optional[str] = None,
        language: str = "en",
        region: str = "US",
        session_id: Optional[str] = None,
    ) -> MedicationRecord:
        """
        Extract a medication record with the language model.

        Args:
            text: Recognized package text
            barcode: Decoded barcode that missed the catalog
            language: Language for free-text answer fields
            region: Market region
            session_id: Scan session this call belongs to (logging only)

        Returns:
            AI_EXTRACTION record, or DEGRADED when the output was unusable

        Raises:
            InsufficientInputError: Not enough text and no barcode
            ExtractionTimeoutError: No answer within ai_timeout_seconds
            ExtractionError: Network/auth/quota failure
        """
        signal = RawSignal(barcode_code=barcode, recognized_text=text)
        if not signal.is_sufficient(self.config.min_text_length):
            raise InsufficientInputError(text_length=signal.text_length)

        prompt = build_extraction_prompt(text or "", barcode=barcode, language=language, region=region)
        timeout = self.config.ai_timeout_seconds

        self.logger.info(
            f"AI extraction: session={session_id}, text_length={signal.text_length}, "
            f"barcode={'yes' if signal.has_barcode else 'no'}, model={self.model_version}"
        )

        try:
            result = await asyncio.wait_for(
                self.client.generate(prompt, json_mode=True),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            self.logger.warning(f"AI extraction timed out after {timeout}s (session={session_id})")
            raise ExtractionTimeoutError(f"AI extraction timed out after {timeout}s", timeout=timeout) from e
        except (OSError, RuntimeError) as e:
            self.logger.error(f"AI extraction call failed (session={session_id}): {e}")
            raise ExtractionError(f"AI extraction failed: {e}", cause=e) from e

        raw_text = result.get("text", "") if isinstance(result, dict) else ""

        try:
            payload = parse_model_response(raw_text, repair=self.config.repair_malformed_json)
        except ParseError as e:
            self.logger.warning(f"Unusable model output, returning degraded record: {e}")
            return build_degraded_record(text, barcode=barcode, region=region, config=self.config)

        record = record_from_payload(
            payload,
            barcode=barcode,
            region=region,
            model_version=self.model_version,
            config=self.config,
        )
        self.logger.info(
            f"AI extraction result: {record.brand_name} (confidence={record.confidence_score:.2f})"
        )
        return record
