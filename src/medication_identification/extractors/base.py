# ============================================================================
# src/medication_identification/extractors/base.py
# ============================================================================
"""
Extractor interface used by the capture orchestrator.

Implementations:
- AIExtractor: calls a language model directly
- RemoteExtractor: calls the HTTP extraction endpoint
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.context import MedicationRecord


class BaseExtractor(ABC):

    @property
    @abstractmethod
    def model_version(self) -> str:
        """Identifier stored on extraction records."""
        pass

    @abstractmethod
    async def extract(
        self,
        text: Optional[str],
        barcode: Optional[str] = None,
        language: str = "en",
        region: str = "US",
        session_id: Optional[str] = None,
    ) -> MedicationRecord:
        """
        Resolve a medication the catalog could not.

        Always returns a record (Degraded on unparseable output).

        Raises:
            InsufficientInputError: Not enough text and no barcode
            ExtractionError: The call itself could not be completed
        """
        pass

    async def close(self):
        """Release network resources. No-op by default."""
        pass
