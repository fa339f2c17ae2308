# ============================================================================
# src/medication_identification/core/context/raw_signal.py
# ============================================================================
"""
Raw device output for one capture attempt
- Decoded barcode (takes precedence)
- Recognized text and OCR confidence
"""

from dataclasses import dataclass
from typing import Optional

@dataclass
class RawSignal:
    barcode_code: Optional[str] = None
    recognized_text: Optional[str] = None
    ocr_confidence: float = 0.0  # 0-1

    @property
    def has_barcode(self) -> bool:
        return bool(self.barcode_code and self.barcode_code.strip())

    @property
    def text_length(self) -> int:
        return len((self.recognized_text or "").strip())

    def is_sufficient(self, min_text_length: int) -> bool:
        """Worth sending to the AI fallback: enough text, or any barcode at all"""
        return self.has_barcode or self.text_length >= min_text_length
