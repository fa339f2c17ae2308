# ============================================================================
# src/medication_identification/capture/collaborators.py
# ============================================================================
"""
Device collaborator interfaces used by the capture orchestrator.

- CaptureDevice: camera or gallery, returns an image
- OCREngine: explicit initialize(), then recognize(image)
- BarcodeDecoder: decode(image) -> DecodedBarcode or None (None is a normal miss)

Reference adapters live next to this module (tesseract_ocr, pyzbar_decoder,
image_device); anything with the same methods can be passed instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class OCRResult:
    """Recognized text for one image."""
    text: str
    confidence: float  # 0-1
    method: str = "unknown"
    language: str = "en"


@dataclass
class DecodedBarcode:
    """One decoded barcode."""
    code: str
    format: str = "UNKNOWN"
    confidence: float = 1.0


class CaptureDevice(ABC):

    @abstractmethod
    async def capture(self) -> Any:
        """
        Acquire an image.

        Raises:
            DeviceError: Permission denied or hardware failure
        """
        pass


class OCREngine(ABC):

    @abstractmethod
    async def initialize(self) -> None:
        """
        Prepare the engine. Must be called before recognize().

        Raises:
            OCRError: Engine unavailable
        """
        pass

    @abstractmethod
    async def recognize(self, image: Any) -> OCRResult:
        """
        Recognize text in an image.

        Raises:
            OCRError: Recognition failed
        """
        pass


class BarcodeDecoder(ABC):

    @abstractmethod
    async def decode(self, image: Any) -> Optional[DecodedBarcode]:
        """Decode the first barcode in the image, or None if there is none."""
        pass
