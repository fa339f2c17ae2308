# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration, shared fixtures and fake collaborators.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from medication_identification.capture.collaborators import (
    BarcodeDecoder,
    DecodedBarcode,
    OCREngine,
    OCRResult,
)
from medication_identification.constants.medication_catalog import MedicationCatalog
from medication_identification.core.config import PipelineConfig
from medication_identification.core.context import MedicationRecord, SourceKind
from medication_identification.core.recorder import SQLiteSessionRecorder
from medication_identification.extractors.base import BaseExtractor
from medication_identification.llm.base import BackendType, BaseLLMClient
from medication_identification.utils.exceptions import OCRError


# ============================================================================
# FAKE COLLABORATORS
# ============================================================================

class FakeOCR(OCREngine):
    """OCR engine returning canned text."""

    def __init__(self, text: str = "", confidence: float = 0.9,
                 error: Optional[OCRError] = None, delay: float = 0.0):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.delay = delay
        self.initialize_calls = 0
        self.recognize_calls = 0

    async def initialize(self) -> None:
        self.initialize_calls += 1

    async def recognize(self, image: Any) -> OCRResult:
        self.recognize_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return OCRResult(text=self.text, confidence=self.confidence, method="fake")


class FakeDecoder(BarcodeDecoder):
    """Barcode decoder returning a canned code (None = no barcode)."""

    def __init__(self, code: Optional[str] = None, error: Optional[Exception] = None):
        self.code = code
        self.error = error
        self.calls = 0

    async def decode(self, image: Any) -> Optional[DecodedBarcode]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.code is None:
            return None
        return DecodedBarcode(code=self.code, format="EAN13")


class FakeLLMClient(BaseLLMClient):
    """Language model client with a scripted answer."""

    def __init__(self, text: str = "{}", error: Optional[Exception] = None, delay: float = 0.0):
        super().__init__({})
        self.text = text
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []
        self.closed = False

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OPENAI

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(self, prompt: str, max_tokens: Optional[int] = None,
                       temperature: Optional[float] = None, json_mode: bool = False) -> Dict[str, Any]:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"text": self.text, "model": self.model_name, "backend": "openai"}

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "backend": "openai", "model": self.model_name, "details": "fake"}

    async def close(self):
        self.closed = True


class FakeExtractor(BaseExtractor):
    """Extractor that returns a fixed record or raises."""

    def __init__(self, record: Optional[MedicationRecord] = None, error: Optional[Exception] = None):
        self.record = record
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    @property
    def model_version(self) -> str:
        return "fake:extractor"

    async def extract(self, text, barcode=None, language="en", region="US", session_id=None):
        self.calls.append({
            "text": text, "barcode": barcode, "language": language,
            "region": region, "session_id": session_id,
        })
        if self.error is not None:
            raise self.error
        return self.record


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def config():
    """Pipeline config with the shipped thresholds and keyword lists"""
    return PipelineConfig.from_settings()


@pytest.fixture
def catalog():
    return MedicationCatalog()


@pytest.fixture
def recorder(tmp_path):
    """SQLite recorder on a throwaway database"""
    return SQLiteSessionRecorder(db_path=tmp_path / "sessions.db")


@pytest.fixture
def ai_record():
    """Record as the AI fallback would return it"""
    return MedicationRecord(
        brand_name="Xarelto",
        generic_name="Rivaroxaban",
        strength="20mg",
        form="tablet",
        confidence_score=0.8,
        source_kind=SourceKind.AI_EXTRACTION,
    )


@pytest.fixture
def valid_ai_response():
    """Well-formed model output"""
    return """{
        "brand_name": "Xarelto",
        "generic_name": "Rivaroxaban",
        "strength": "20 mg",
        "form": "tablet",
        "manufacturer": "Bayer",
        "active_ingredients": ["Rivaroxaban"],
        "indications": ["Prevention of stroke in atrial fibrillation"],
        "warnings": ["Bleeding risk"],
        "usage_instructions": {"dosage": "20 mg", "frequency": "once daily", "timing": "with evening meal"},
        "confidence_score": 0.82
    }"""
