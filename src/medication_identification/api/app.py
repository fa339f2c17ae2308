# ============================================================================
# src/medication_identification/api/app.py
# ============================================================================
"""
FastAPI server for medication identification.

Endpoints:
- GET  /api/health              liveness + catalog size + model backend
- GET  /api/health/model        AI fallback reachability
- POST /api/extract-medication  text/barcode -> validated record
- POST /api/scan                photo upload -> full capture attempt
- GET  /api/catalog             catalog search by name

Run with `medscan serve` or `uvicorn medication_identification.api.app:app`.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, List, Optional, Tuple

from fastapi import FastAPI, File, Form, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    CatalogEntryResponse,
    ErrorResponse,
    ExtractMedicationRequest,
    ExtractMedicationResponse,
    HealthResponse,
    ScanResponse,
)
from .. import __version__
from ..capture.collaborators import BarcodeDecoder, OCREngine
from ..capture.image_device import ImageBytesDevice
from ..capture.orchestrator import CaptureOrchestrator
from ..config import base_settings, llm_settings
from ..constants.medication_catalog import MedicationCatalog, get_catalog
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.locale import normalize_language
from ..core.recorder import SessionRecorder, SQLiteSessionRecorder
from ..service import IdentificationService
from ..utils.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    InsufficientInputError,
)

logger = logging.getLogger(__name__)

CollaboratorsFactory = Callable[[str], Tuple[OCREngine, BarcodeDecoder]]


def default_collaborators(language: str) -> Tuple[OCREngine, BarcodeDecoder]:
    """Tesseract + pyzbar, imported on first scan so the API starts without them."""
    from ..capture.pyzbar_decoder import PyzbarBarcodeDecoder
    from ..capture.tesseract_ocr import TesseractOCREngine

    languages = ["en"] if language == "en" else ["en", language]
    return TesseractOCREngine(languages=languages), PyzbarBarcodeDecoder()


def _error(status_code: int, error: str, error_kind: str,
           retryable: bool = False, region: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, error_kind=error_kind, retryable=retryable, region=region)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(
    service: Optional[IdentificationService] = None,
    recorder: Optional[SessionRecorder] = None,
    collaborators_factory: Optional[CollaboratorsFactory] = None,
    config: Optional[PipelineConfig] = None,
    catalog: Optional[MedicationCatalog] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        service: Identification service (built on startup when None)
        recorder: Session recorder (SQLite at SESSION_DB_PATH when None)
        collaborators_factory: language -> (OCR engine, barcode decoder) for /api/scan
        config: Pipeline config shared by the service and scans
        catalog: Catalog to resolve against
    """
    config = config or get_pipeline_config()
    catalog = catalog or get_catalog()
    collaborators_factory = collaborators_factory or default_collaborators

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.service is None:
            if app.state.recorder is None:
                app.state.recorder = SQLiteSessionRecorder()
            app.state.service = IdentificationService(
                recorder=app.state.recorder, config=config, catalog=catalog
            )
        logger.info(
            f"Medication API ready: {len(catalog)} catalog entries, "
            f"backend={llm_settings.LLM_BACKEND}"
        )
        yield
        await app.state.service.extractor.close()

    app = FastAPI(
        title="Medication Identification API",
        description="Identify medications from package text, barcodes or photos",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.recorder = recorder if recorder is not None else getattr(service, "recorder", None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=base_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.info(f"Rejected request to {request.url.path}: {message}")
        return _error(400, message, "invalid_request")

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(
            status="healthy",
            version=__version__,
            catalog_entries=len(catalog),
            backend=llm_settings.LLM_BACKEND,
        )

    @app.get("/api/health/model")
    async def model_health():
        """Reachability of the AI fallback, plus call statistics for direct clients."""
        extractor = app.state.service.extractor
        client = getattr(extractor, "client", None)
        if client is None:
            return {"healthy": None, "backend": extractor.model_version,
                    "details": "No direct model client in this process"}
        status = await client.health_check()
        status["statistics"] = client.get_statistics()
        return status

    @app.post(
        "/api/extract-medication",
        response_model=ExtractMedicationResponse,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse},
                   502: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    )
    async def extract_medication(
        request: ExtractMedicationRequest,
        x_user_id: Optional[str] = Header(default=None),
    ):
        """
        Resolve recognized text and/or a barcode into a validated record.

        The record is stored (and linked to sessionId) only when the caller
        identifies itself with X-User-Id.
        """
        service: IdentificationService = app.state.service
        try:
            result = await service.identify(
                request.text,
                barcode=request.barcode,
                language=request.language,
                region=request.region,
                user_id=x_user_id,
                session_id=request.session_id,
            )
        except InsufficientInputError as e:
            return _error(422, str(e), "insufficient_input", region=request.region)
        except ExtractionTimeoutError as e:
            logger.warning(f"Extraction timed out: {e}")
            return _error(504, str(e), "timeout", retryable=True, region=request.region)
        except ExtractionError as e:
            logger.error(f"Extraction failed: {e}")
            return _error(502, str(e), "extraction", retryable=e.retryable, region=request.region)

        return result.to_response()

    @app.post("/api/scan", response_model=ScanResponse)
    async def scan(
        file: UploadFile = File(...),
        language: Optional[str] = Form(default=None),
        region: Optional[str] = Form(default=None),
        x_user_id: Optional[str] = Header(default=None),
    ):
        """
        Run a full capture attempt on an uploaded photo.

        Device, OCR and extraction problems come back as a result with
        outcome 'failed' or 'nothing_to_show', not as HTTP errors.
        """
        data = await file.read()
        logger.info(f"Scan upload: {file.filename} ({len(data)} bytes)")

        ocr, decoder = collaborators_factory(normalize_language(language, config.default_language))
        service: IdentificationService = app.state.service
        orchestrator = CaptureOrchestrator(
            ocr=ocr,
            decoder=decoder,
            extractor=service.extractor,
            recorder=app.state.recorder if x_user_id else None,
            device=ImageBytesDevice(data),
            config=config,
            catalog=catalog,
        )
        result = await orchestrator.capture(
            user_id=x_user_id or "anonymous", language=language, region=region
        )
        return result.to_dict()

    @app.get("/api/catalog", response_model=List[CatalogEntryResponse])
    async def search_catalog(q: str, region: Optional[str] = None):
        return [
            CatalogEntryResponse(
                product_name=entry.product_name,
                generic_name=entry.generic_name,
                manufacturer=entry.manufacturer,
                strength=entry.strength,
                form=entry.form,
                country=entry.country,
                barcode=entry.barcode,
            )
            for entry in catalog.search(q, region=region.upper() if region else None)
        ]

    return app


app = create_app()
