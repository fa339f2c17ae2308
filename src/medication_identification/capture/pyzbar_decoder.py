# ============================================================================
# src/medication_identification/capture/pyzbar_decoder.py
# ============================================================================
"""
pyzbar barcode adapter (requires the zbar shared library).
"""

import asyncio
import logging
from typing import Optional, Sequence

import numpy as np
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from .collaborators import BarcodeDecoder, DecodedBarcode

logger = logging.getLogger(__name__)

# Retail drug packaging; checked in this order when several codes are visible
PREFERRED_FORMATS = ("EAN13", "EAN8", "UPCA", "UPCE", "CODE128", "DATABAR", "QRCODE")


class PyzbarBarcodeDecoder(BarcodeDecoder):

    def __init__(self, preferred_formats: Sequence[str] = PREFERRED_FORMATS):
        self.preferred_formats = tuple(preferred_formats)

    def _decode_sync(self, image: Image.Image) -> Optional[DecodedBarcode]:
        arr = np.array(image.convert("L"))
        decoded = pyzbar_decode(arr)
        if not decoded:
            return None

        candidates = []
        for d in decoded:
            data_bytes = getattr(d, "data", b"")
            try:
                code = data_bytes.decode("utf-8")
            except UnicodeDecodeError:
                code = data_bytes.decode("latin-1", errors="ignore")
            code = code.strip()
            if code:
                candidates.append(DecodedBarcode(code=code, format=getattr(d, "type", None) or "UNKNOWN"))

        if not candidates:
            return None

        def rank(barcode: DecodedBarcode) -> int:
            try:
                return self.preferred_formats.index(barcode.format)
            except ValueError:
                return len(self.preferred_formats)

        best = min(candidates, key=rank)
        logger.debug(f"Decoded {len(candidates)} barcode(s), using {best.format} {best.code}")
        return best

    async def decode(self, image: Image.Image) -> Optional[DecodedBarcode]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._decode_sync, image)
