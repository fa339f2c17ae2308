# ============================================================================
# src/medication_identification/capture/orchestrator.py
# ============================================================================
"""
Capture Orchestrator

Drives one capture attempt from image to a presentable result:

    capture -> barcode_scan + ocr -> session_create
        -> (barcode hit) validate -> done
        -> text_match -> (miss) ai_extraction -> validate -> persist -> done

Terminal states besides done: nothing_to_show (informational), failed,
superseded (a retake started a newer attempt).

Policies (from PipelineConfig):
- parallel_device_stages: barcode decode and OCR run concurrently
- ocr_on_barcode_hit: keep running OCR when the barcode already resolved
- keep_barcode_result_on_ocr_failure: an OCR failure after a barcode hit
  keeps the catalog result instead of failing the attempt (off by default)
- extraction_error_policy: 'degrade' to a synthesized record when text
  exists, or 'surface' a retryable failure
- restrict_catalog_to_region: filter catalog matches by region

Persistence failures are logged and never block a resolved record.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .collaborators import BarcodeDecoder, CaptureDevice, DecodedBarcode, OCREngine, OCRResult
from ..constants.medication_catalog import MedicationCatalog, get_catalog
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, RawSignal, RiskAssessment
from ..core.locale import normalize_language, normalize_region
from ..core.recorder import SessionRecorder
from ..extractors.ai_extractor import build_degraded_record
from ..extractors.base import BaseExtractor
from ..extractors.factory import create_extractor
from ..resolvers.barcode_resolver import resolve_by_barcode
from ..resolvers.text_matcher import resolve_by_text
from ..utils.exceptions import (
    DeviceError,
    ExtractionError,
    InsufficientInputError,
    OCRError,
)
from ..utils.logging import LogAdapter
from ..validators.safety_validator import validate

logger = logging.getLogger(__name__)

MESSAGE_INSUFFICIENT = (
    "We couldn't read enough of the label. Try a clearer photo with the "
    "medication name and strength in view."
)
MESSAGE_BLOCKED = "We couldn't identify this medication. Please try again."
MESSAGE_EXTRACTION_FAILED = "The identification service is unavailable right now. Please try again."
MESSAGE_NO_DEVICE = "No camera or photo source is available."


class CaptureStage(str, Enum):
    IDLE = "idle"
    CAPTURE = "capture"
    BARCODE_SCAN = "barcode_scan"
    OCR = "ocr"
    SESSION_CREATE = "session_create"
    TEXT_MATCH = "text_match"
    AI_EXTRACTION = "ai_extraction"
    VALIDATE = "validate"
    PERSIST = "persist"
    DONE = "done"
    NOTHING_TO_SHOW = "nothing_to_show"
    FAILED = "failed"
    SUPERSEDED = "superseded"


class CaptureOutcome(str, Enum):
    RESOLVED = "resolved"
    NOTHING_TO_SHOW = "nothing_to_show"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass
class CaptureResult:
    attempt_id: str
    outcome: CaptureOutcome
    record: Optional[MedicationRecord] = None
    assessment: Optional[RiskAssessment] = None
    session_id: Optional[str] = None
    extraction_id: Optional[str] = None
    barcode: Optional[str] = None
    ocr_text: Optional[str] = None
    ocr_confidence: float = 0.0
    message: str = ""
    error_kind: Optional[str] = None
    retryable: bool = False
    stages: List[CaptureStage] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        """True when the structured result must not be shown."""
        if self.outcome != CaptureOutcome.RESOLVED or self.assessment is None:
            return True
        return self.assessment.blocks_presentation

    @property
    def show_warnings(self) -> bool:
        return bool(self.assessment and self.assessment.show_warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "outcome": self.outcome.value,
            "record": self.record.to_dict() if self.record else None,
            "assessment": self.assessment.to_dict() if self.assessment else None,
            "blocked": self.blocked,
            "session_id": self.session_id,
            "extraction_id": self.extraction_id,
            "barcode": self.barcode,
            "ocr_text": self.ocr_text,
            "ocr_confidence": self.ocr_confidence,
            "message": self.message,
            "error_kind": self.error_kind,
            "retryable": self.retryable,
            "stages": [stage.value for stage in self.stages],
        }


class _Superseded(Exception):
    """Internal: a newer attempt started while this one was suspended."""


@dataclass
class _Attempt:
    id: str
    generation: int
    user_id: str
    language: str
    region: str
    log: LogAdapter
    stages: List[CaptureStage] = field(default_factory=list)
    barcode: Optional[str] = None
    ocr: Optional[OCRResult] = None
    session_id: Optional[str] = None


StateCallback = Callable[[CaptureStage, str], None]


class CaptureOrchestrator:
    """
    Sequential async state machine for one user's capture screen.

    Args:
        ocr: OCR engine (initialized explicitly on every attempt)
        decoder: Barcode decoder
        extractor: AI fallback (defaults to create_extractor() with the same config)
        recorder: Session/extraction persistence (None = don't persist)
        device: Capture device used when capture() gets no image
        config: Thresholds and policies
        catalog: Catalog to resolve against (defaults to the shared one)
        on_state_change: Called with (stage, attempt_id) for the current attempt only
    """

    def __init__(
        self,
        ocr: OCREngine,
        decoder: BarcodeDecoder,
        extractor: Optional[BaseExtractor] = None,
        recorder: Optional[SessionRecorder] = None,
        device: Optional[CaptureDevice] = None,
        config: Optional[PipelineConfig] = None,
        catalog: Optional[MedicationCatalog] = None,
        on_state_change: Optional[StateCallback] = None,
    ):
        self.config = config or get_pipeline_config()
        self.ocr = ocr
        self.decoder = decoder
        self.extractor = extractor or create_extractor(self.config)
        self.recorder = recorder
        self.device = device
        self.catalog = catalog or get_catalog()
        self.on_state_change = on_state_change

        self._generation = 0
        self._state = CaptureStage.IDLE
        self.last_result: Optional[CaptureResult] = None

    @property
    def state(self) -> CaptureStage:
        return self._state

    def reset(self):
        """Retake: abandon any in-flight attempt and clear all results."""
        self._generation += 1
        self._state = CaptureStage.IDLE
        self.last_result = None
        logger.debug(f"Capture reset (generation {self._generation})")

    # ---- state bookkeeping -------------------------------------------------

    def _is_current(self, attempt: _Attempt) -> bool:
        return attempt.generation == self._generation

    def _check(self, attempt: _Attempt):
        if not self._is_current(attempt):
            raise _Superseded()

    def _enter(self, attempt: _Attempt, stage: CaptureStage):
        self._check(attempt)
        attempt.stages.append(stage)
        self._state = stage
        attempt.log.debug(f"-> {stage.value}")
        if self.on_state_change:
            self.on_state_change(stage, attempt.id)

    def _finish(self, attempt: _Attempt, stage: CaptureStage, result: CaptureResult) -> CaptureResult:
        self._enter(attempt, stage)
        result.stages = list(attempt.stages)
        self.last_result = result
        return result

    def _result(self, attempt: _Attempt, outcome: CaptureOutcome, **kwargs) -> CaptureResult:
        return CaptureResult(
            attempt_id=attempt.id,
            outcome=outcome,
            session_id=attempt.session_id,
            barcode=attempt.barcode,
            ocr_text=attempt.ocr.text if attempt.ocr else None,
            ocr_confidence=attempt.ocr.confidence if attempt.ocr else 0.0,
            **kwargs,
        )

    def _fail(self, attempt: _Attempt, error_kind: str, message: str, retryable: bool = True) -> CaptureResult:
        attempt.log.warning(f"Capture failed ({error_kind}): {message}")
        return self._finish(
            attempt,
            CaptureStage.FAILED,
            self._result(attempt, CaptureOutcome.FAILED, message=message,
                         error_kind=error_kind, retryable=retryable),
        )

    def _nothing_to_show(self, attempt: _Attempt) -> CaptureResult:
        attempt.log.info("Nothing to analyze in this capture")
        return self._finish(
            attempt,
            CaptureStage.NOTHING_TO_SHOW,
            self._result(attempt, CaptureOutcome.NOTHING_TO_SHOW,
                         message=MESSAGE_INSUFFICIENT, error_kind="insufficient_input"),
        )

    # ---- device stages -----------------------------------------------------

    async def _decode_barcode(self, attempt: _Attempt, image: Any) -> Optional[str]:
        try:
            decoded: Optional[DecodedBarcode] = await self.decoder.decode(image)
        except Exception as e:
            # A decoder failure is treated like "no barcode in view"
            attempt.log.warning(f"Barcode decoder error treated as a miss: {e}", exc_info=True)
            return None
        if decoded is None or not decoded.code or not decoded.code.strip():
            attempt.log.debug("No barcode detected")
            return None
        attempt.log.info(f"Barcode detected: {decoded.format} {decoded.code.strip()}")
        return decoded.code.strip()

    async def _recognize(self, attempt: _Attempt, image: Any) -> Tuple[Optional[OCRResult], Optional[OCRError]]:
        try:
            await self.ocr.initialize()
            result = await self.ocr.recognize(image)
        except OCRError as e:
            return None, e
        attempt.log.info(f"OCR: {len(result.text.strip())} chars, confidence={result.confidence:.2f}")
        return result, None

    async def _run_device_stages(
        self,
        attempt: _Attempt,
        image: Any,
    ) -> Tuple[Optional[str], Optional[MedicationRecord], Optional[OCRResult], Optional[OCRError]]:
        """Barcode decode + barcode resolution + OCR, concurrently when configured."""
        region_filter = attempt.region if self.config.restrict_catalog_to_region else None

        async def barcode_stage():
            code = await self._decode_barcode(attempt, image)
            record = resolve_by_barcode(code, region=region_filter, config=self.config,
                                        catalog=self.catalog) if code else None
            return code, record

        if self.config.parallel_device_stages and self.config.ocr_on_barcode_hit:
            self._enter(attempt, CaptureStage.BARCODE_SCAN)
            self._enter(attempt, CaptureStage.OCR)
            (code, record), (ocr_result, ocr_error) = await asyncio.gather(
                barcode_stage(), self._recognize(attempt, image)
            )
            return code, record, ocr_result, ocr_error

        self._enter(attempt, CaptureStage.BARCODE_SCAN)
        code, record = await barcode_stage()
        self._check(attempt)

        if record is not None and not self.config.ocr_on_barcode_hit:
            attempt.log.debug("Barcode resolved; OCR skipped")
            return code, record, None, None

        self._enter(attempt, CaptureStage.OCR)
        ocr_result, ocr_error = await self._recognize(attempt, image)
        return code, record, ocr_result, ocr_error

    # ---- persistence (never fatal) ----------------------------------------

    async def _create_session(self, attempt: _Attempt) -> Optional[str]:
        if self.recorder is None:
            return None
        try:
            return await self.recorder.create_session(
                attempt.user_id, attempt.barcode, attempt.language, attempt.region
            )
        except Exception as e:
            attempt.log.error(f"Session create failed, continuing without session: {e}", exc_info=True)
            return None

    async def _persist(self, attempt: _Attempt, record: MedicationRecord,
                       assessment: RiskAssessment, model_version: str) -> Optional[str]:
        if self.recorder is None:
            return None
        try:
            extraction_id = await self.recorder.create_extraction(
                attempt.user_id, record, assessment.flag_values(), model_version=model_version
            )
        except Exception as e:
            attempt.log.error(f"Extraction write failed: {e}", exc_info=True)
            return None

        if attempt.session_id:
            try:
                await self.recorder.link_extraction_to_session(
                    attempt.session_id, extraction_id, attempt.user_id
                )
            except Exception as e:
                attempt.log.error(f"Linking extraction to session failed: {e}", exc_info=True)
        return extraction_id

    # ---- main flow ----------------------------------------------------------

    def _resolved(self, attempt: _Attempt, record: MedicationRecord,
                  assessment: RiskAssessment, extraction_id: Optional[str] = None) -> CaptureResult:
        if assessment.blocks_presentation:
            message = MESSAGE_BLOCKED
        elif assessment.warnings:
            message = assessment.warnings[0]
        else:
            message = ""

        attempt.log.info(
            f"Resolved {record.brand_name!r} via {record.source_kind.value} "
            f"(confidence={record.confidence_score:.2f}, blocked={assessment.blocks_presentation})"
        )
        return self._finish(
            attempt,
            CaptureStage.DONE,
            self._result(attempt, CaptureOutcome.RESOLVED, record=record, assessment=assessment,
                         extraction_id=extraction_id, message=message),
        )

    async def capture(
        self,
        user_id: str,
        image: Any = None,
        language: Optional[str] = None,
        region: Optional[str] = None,
    ) -> CaptureResult:
        """
        Run one capture attempt.

        Starting a capture supersedes any attempt still in flight.

        Args:
            user_id: Owner of the session and extraction records
            image: Already captured image; taken from the device when None
            language: Requested answer language
            region: Market region

        Returns:
            CaptureResult (never raises for device/OCR/extraction problems)
        """
        self._generation += 1
        attempt_id = uuid.uuid4().hex[:12]
        attempt = _Attempt(
            id=attempt_id,
            generation=self._generation,
            user_id=user_id,
            language=normalize_language(language, self.config.default_language),
            region=normalize_region(region, self.config.default_region),
            log=LogAdapter(logger, {"attempt_id": attempt_id, "user_id": user_id}),
        )

        try:
            return await self._run(attempt, image)
        except _Superseded:
            attempt.log.info("Attempt superseded by a retake; result discarded")
            attempt.stages.append(CaptureStage.SUPERSEDED)
            return CaptureResult(
                attempt_id=attempt.id,
                outcome=CaptureOutcome.SUPERSEDED,
                session_id=attempt.session_id,
                stages=list(attempt.stages),
            )

    async def _run(self, attempt: _Attempt, image: Any) -> CaptureResult:
        config = self.config

        # Capture
        self._enter(attempt, CaptureStage.CAPTURE)
        if image is None:
            if self.device is None:
                return self._fail(attempt, "device", MESSAGE_NO_DEVICE)
            try:
                image = await self.device.capture()
            except DeviceError as e:
                self._check(attempt)
                return self._fail(attempt, "device", e.hint)
            self._check(attempt)

        # Barcode + OCR
        code, barcode_record, ocr_result, ocr_error = await self._run_device_stages(attempt, image)
        self._check(attempt)
        attempt.barcode = code
        attempt.ocr = ocr_result

        if ocr_error is not None:
            if barcode_record is None or not config.keep_barcode_result_on_ocr_failure:
                return self._fail(attempt, "ocr", ocr_error.hint)
            attempt.log.warning(f"OCR failed after barcode hit, keeping catalog result: {ocr_error}")

        signal = RawSignal(
            barcode_code=code,
            recognized_text=ocr_result.text if ocr_result else None,
            ocr_confidence=ocr_result.confidence if ocr_result else 0.0,
        )

        # Session before any resolution, so an AI call can be linked to it
        self._enter(attempt, CaptureStage.SESSION_CREATE)
        attempt.session_id = await self._create_session(attempt)
        self._check(attempt)

        if barcode_record is not None:
            self._enter(attempt, CaptureStage.VALIDATE)
            return self._resolved(attempt, barcode_record, validate(barcode_record, config))

        # Text catalog
        self._enter(attempt, CaptureStage.TEXT_MATCH)
        region_filter = attempt.region if config.restrict_catalog_to_region else None
        record = resolve_by_text(signal.recognized_text, region=region_filter,
                                 config=config, catalog=self.catalog)
        model_version = "catalog"

        if record is None:
            if not signal.is_sufficient(config.min_text_length):
                return self._nothing_to_show(attempt)

            # AI fallback
            self._enter(attempt, CaptureStage.AI_EXTRACTION)
            try:
                record = await self.extractor.extract(
                    signal.recognized_text,
                    barcode=signal.barcode_code,
                    language=attempt.language,
                    region=attempt.region,
                    session_id=attempt.session_id,
                )
                model_version = self.extractor.model_version
            except InsufficientInputError:
                self._check(attempt)
                return self._nothing_to_show(attempt)
            except ExtractionError as e:
                self._check(attempt)
                if config.degrade_on_extraction_error and signal.text_length > 0:
                    attempt.log.warning(f"Extraction failed, degrading: {e}")
                    record = build_degraded_record(
                        signal.recognized_text, barcode=signal.barcode_code,
                        region=attempt.region, config=config,
                    )
                    model_version = "degraded"
                else:
                    return self._fail(attempt, "extraction", MESSAGE_EXTRACTION_FAILED,
                                      retryable=e.retryable)
            self._check(attempt)

        # Validate + persist
        self._enter(attempt, CaptureStage.VALIDATE)
        assessment = validate(record, config)

        self._enter(attempt, CaptureStage.PERSIST)
        extraction_id = await self._persist(attempt, record, assessment, model_version)
        self._check(attempt)

        return self._resolved(attempt, record, assessment, extraction_id)
