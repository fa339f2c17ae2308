# ============================================================================
# src/medication_identification/service.py
# ============================================================================
"""
Identification Service

Server-side resolution for requests that already carry text and/or a
barcode (the capture happened on the client):

    barcode catalog -> text catalog -> AI extraction -> validate -> store

Storage only happens for identified users and never fails the request.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .constants.medication_catalog import MedicationCatalog, get_catalog
from .core.config import PipelineConfig, get_pipeline_config
from .core.context import MedicationRecord, RawSignal, RiskAssessment
from .core.locale import normalize_language, normalize_region
from .core.recorder import SessionRecorder
from .extractors.ai_extractor import build_degraded_record
from .extractors.base import BaseExtractor
from .extractors.factory import create_extractor
from .resolvers.barcode_resolver import resolve_by_barcode
from .resolvers.text_matcher import resolve_by_text
from .utils.exceptions import ExtractionError, InsufficientInputError
from .utils.logging import log_performance
from .validators.safety_validator import validate

logger = logging.getLogger(__name__)


@dataclass
class IdentificationResult:
    record: MedicationRecord
    assessment: RiskAssessment
    region: str
    language: str
    extraction_id: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "data": self.record.to_dict(),
            "assessment": self.assessment.to_dict(),
            "source": self.record.source_kind.value,
            "region": self.region,
            "confidence_score": self.record.confidence_score,
            "extraction_id": self.extraction_id,
        }


class IdentificationService:
    """
    Args:
        extractor: AI fallback (defaults to create_extractor())
        recorder: Where extractions are stored for identified users
        config: Thresholds and policies
        catalog: Catalog to resolve against
    """

    def __init__(
        self,
        extractor: Optional[BaseExtractor] = None,
        recorder: Optional[SessionRecorder] = None,
        config: Optional[PipelineConfig] = None,
        catalog: Optional[MedicationCatalog] = None,
    ):
        self.config = config or get_pipeline_config()
        self.extractor = extractor or create_extractor(self.config)
        self.recorder = recorder
        self.catalog = catalog or get_catalog()

    @log_performance(logger, "identify")
    async def identify(
        self,
        text: Optional[str],
        barcode: Optional[str] = None,
        language: Optional[str] = None,
        region: Optional[str] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> IdentificationResult:
        """
        Resolve text/barcode into a validated record.

        Raises:
            InsufficientInputError: Nothing worth analyzing
            ExtractionError: AI call failed and the policy is to surface it
        """
        language = normalize_language(language, self.config.default_language)
        region = normalize_region(region, self.config.default_region)
        region_filter = region if self.config.restrict_catalog_to_region else None
        signal = RawSignal(barcode_code=barcode, recognized_text=text)

        logger.info(
            f"Identify: text_length={signal.text_length}, barcode={'yes' if signal.has_barcode else 'no'}, "
            f"language={language}, region={region}"
        )

        model_version = "catalog"
        record = None
        if signal.has_barcode:
            record = resolve_by_barcode(barcode, region=region_filter, config=self.config, catalog=self.catalog)
        if record is None:
            record = resolve_by_text(text, region=region_filter, config=self.config, catalog=self.catalog)

        if record is None:
            if not signal.is_sufficient(self.config.min_text_length):
                raise InsufficientInputError(text_length=signal.text_length)
            try:
                record = await self.extractor.extract(
                    text, barcode=barcode, language=language, region=region, session_id=session_id
                )
                model_version = self.extractor.model_version
            except ExtractionError as e:
                if not (self.config.degrade_on_extraction_error and signal.text_length > 0):
                    raise
                logger.warning(f"Extraction failed, degrading: {e}")
                record = build_degraded_record(text, barcode=barcode, region=region, config=self.config)
                model_version = "degraded"

        assessment = validate(record, self.config)
        extraction_id = await self._store(record, assessment, model_version, user_id, session_id)

        return IdentificationResult(
            record=record,
            assessment=assessment,
            region=region,
            language=language,
            extraction_id=extraction_id,
        )

    async def _store(
        self,
        record: MedicationRecord,
        assessment: RiskAssessment,
        model_version: str,
        user_id: Optional[str],
        session_id: Optional[str],
    ) -> Optional[str]:
        if self.recorder is None or not user_id:
            return None
        try:
            extraction_id = await self.recorder.create_extraction(
                user_id, record, assessment.flag_values(), model_version=model_version
            )
        except Exception as e:
            logger.error(f"Failed to store extraction: {e}", exc_info=True)
            return None

        if session_id:
            try:
                await self.recorder.link_extraction_to_session(session_id, extraction_id, user_id)
            except Exception as e:
                logger.error(f"Failed to link extraction to session {session_id}: {e}", exc_info=True)
        return extraction_id
