# ============================================================================
# src/medication_identification/capture/tesseract_ocr.py
# ============================================================================
"""
Tesseract OCR adapter

pytesseract on a Pillow image. Requires the tesseract binary plus the
traineddata for each configured language (eng, aze, rus, tur).
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

import pytesseract
from PIL import Image, ImageOps

from .collaborators import OCREngine, OCRResult
from ..utils.exceptions import OCRError
from ..utils.logging import log_performance

logger = logging.getLogger(__name__)

# App language code -> tesseract language
TESSERACT_LANGUAGES: Dict[str, str] = {
    "en": "eng",
    "az": "aze",
    "ru": "rus",
    "tr": "tur",
}


class TesseractOCREngine(OCREngine):
    """
    OCR engine backed by Tesseract.

    Args:
        languages: App language codes to load (default: en)
        psm: Tesseract page segmentation mode (11 = sparse text, good for packaging)
    """

    def __init__(self, languages: Optional[Iterable[str]] = None, psm: int = 11):
        codes = list(languages or ["en"])
        self.languages = codes
        self.tesseract_lang = "+".join(TESSERACT_LANGUAGES.get(c.lower(), c) for c in codes)
        self.psm = psm
        self._initialized = False
        self.version: Optional[str] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Check the tesseract binary and the requested languages."""
        if self._initialized:
            return

        loop = asyncio.get_running_loop()
        try:
            version = await loop.run_in_executor(None, pytesseract.get_tesseract_version)
            available = await loop.run_in_executor(None, pytesseract.get_languages)
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError, OSError) as e:
            raise OCRError(f"Tesseract is not available: {e}") from e

        missing = [lang for lang in self.tesseract_lang.split("+") if lang not in available]
        if missing:
            raise OCRError(f"Tesseract language data missing: {', '.join(missing)}")

        self.version = str(version)
        self._initialized = True
        logger.info(f"Tesseract {self.version} ready (lang={self.tesseract_lang})")

    def _prepare(self, image: Image.Image) -> Image.Image:
        """Grayscale + autocontrast; labels are often glossy and low contrast."""
        return ImageOps.autocontrast(ImageOps.grayscale(image))

    def _recognize_sync(self, image: Image.Image) -> OCRResult:
        data = pytesseract.image_to_data(
            self._prepare(image),
            lang=self.tesseract_lang,
            config=f"--psm {self.psm}",
            output_type=pytesseract.Output.DICT,
        )

        texts = []
        confidences = []
        for i, conf in enumerate(data['conf']):
            conf = float(conf)
            if conf > 0:
                text = data['text'][i].strip()
                if text:
                    texts.append(text)
                    confidences.append(conf / 100.0)

        return OCRResult(
            text=" ".join(texts),
            confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            method="tesseract",
            language=self.languages[0] if self.languages else "en",
        )

    @log_performance(logger, "tesseract recognize")
    async def recognize(self, image: Image.Image) -> OCRResult:
        if not self._initialized:
            raise OCRError("OCR engine used before initialize()")

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._recognize_sync, image)
        except (pytesseract.TesseractError, OSError, ValueError) as e:
            raise OCRError(f"Text recognition failed: {e}") from e
