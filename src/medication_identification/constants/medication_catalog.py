# ============================================================================
# src/medication_identification/constants/medication_catalog.py
# ============================================================================
"""
Known-Medication Catalog Lookup.

Read-only, shared across all capture attempts without locking. Built once
from CATALOG_ENTRIES into three indexes:
- barcode -> entry position
- ordered lowercase product/generic names (containment scans)
- inverted token index: name token -> sorted entry positions

Every lookup resolves ties by original catalog position, so results are
identical to a linear scan over the rows.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from .catalog_entries import CATALOG_ENTRIES, CatalogEntry
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Token-level partial matches ignore anything this short or shorter
MIN_TOKEN_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")


def normalize_strength(strength: str) -> str:
    """'100 units/ml' -> '100units/ml', '500 MG' -> '500mg'"""
    return _WHITESPACE.sub("", strength or "").lower()


class MedicationCatalog:
    """
    Indexed catalog of known medications.

    Usage:
        catalog = get_catalog()
        entry = catalog.find_by_barcode("5000159461788")
    """

    def __init__(self, entries: Iterable[CatalogEntry] = CATALOG_ENTRIES):
        self._entries: Tuple[CatalogEntry, ...] = tuple(entries)

        self._by_barcode: Dict[str, int] = {}
        self._product_names: Tuple[str, ...] = tuple(
            e.product_name.lower() for e in self._entries
        )
        self._generic_names: Tuple[str, ...] = tuple(
            e.generic_name.lower() for e in self._entries
        )
        self._strengths: Tuple[str, ...] = tuple(
            normalize_strength(e.strength) for e in self._entries
        )
        self._token_index: Dict[str, List[int]] = {}

        for position, entry in enumerate(self._entries):
            if entry.barcode:
                code = entry.barcode.strip()
                if code in self._by_barcode:
                    raise ConfigurationError(
                        f"Duplicate catalog barcode {code}: "
                        f"{self._entries[self._by_barcode[code]].product_name} "
                        f"and {entry.product_name}"
                    )
                self._by_barcode[code] = position

            tokens = set(self._product_names[position].split())
            tokens.update(self._generic_names[position].split())
            for token in tokens:
                if len(token) > MIN_TOKEN_LENGTH:
                    self._token_index.setdefault(token, []).append(position)

        logger.debug(
            f"Catalog indexed: {len(self._entries)} entries, "
            f"{len(self._by_barcode)} barcodes, {len(self._token_index)} tokens"
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def _allowed(self, position: int, region: Optional[str]) -> bool:
        return self._entries[position].sold_in(region)

    def find_by_barcode(self, code: str, region: Optional[str] = None) -> Optional[CatalogEntry]:
        """Exact barcode match after trimming. Never raises."""
        if not code:
            return None
        position = self._by_barcode.get(code.strip())
        if position is None or not self._allowed(position, region):
            return None
        return self._entries[position]

    def find_by_product_name(self, text: str, region: Optional[str] = None) -> Optional[CatalogEntry]:
        """First entry whose product name occurs in the text."""
        return self._first_contained(self._product_names, text, region)

    def find_by_generic_name(self, text: str, region: Optional[str] = None) -> Optional[CatalogEntry]:
        """First entry whose generic name occurs in the text."""
        return self._first_contained(self._generic_names, text, region)

    def _first_contained(
        self,
        names: Tuple[str, ...],
        text: str,
        region: Optional[str]
    ) -> Optional[CatalogEntry]:
        text = (text or "").lower()
        for position, name in enumerate(names):
            if name and name in text and self._allowed(position, region):
                return self._entries[position]
        return None

    def find_by_token(self, text: str, region: Optional[str] = None) -> Optional[CatalogEntry]:
        """
        Lowest-position entry with any name token (> 3 chars) contained in text.

        Tokens are matched by substring, same as name containment, so
        'ibuprofenum' still hits the 'ibuprofen' token.
        """
        text = (text or "").lower()
        best: Optional[int] = None
        for token, positions in self._token_index.items():
            if token not in text:
                continue
            for position in positions:
                if best is not None and position >= best:
                    break
                if self._allowed(position, region):
                    best = position
                    break
        return self._entries[best] if best is not None else None

    def find_by_strength(self, dosage: str, region: Optional[str] = None) -> Optional[CatalogEntry]:
        """
        First entry whose strength contains the normalized dosage ('500mg').

        The dosage must not be glued to a preceding digit or decimal point,
        so '5ml' does not match '15ml' and '5mg' does not match '2.5mg'.
        """
        dosage = normalize_strength(dosage)
        if not dosage:
            return None
        pattern = re.compile(r"(?<![\d.])" + re.escape(dosage))
        for position, strength in enumerate(self._strengths):
            if pattern.search(strength) and self._allowed(position, region):
                return self._entries[position]
        return None

    def search(self, query: str, region: Optional[str] = None) -> List[CatalogEntry]:
        """All entries whose product or generic name contains the query."""
        term = (query or "").strip().lower()
        if not term:
            return []
        return [
            self._entries[position]
            for position in range(len(self._entries))
            if (term in self._product_names[position] or term in self._generic_names[position])
            and self._allowed(position, region)
        ]


_catalog_instance: Optional[MedicationCatalog] = None


def get_catalog() -> MedicationCatalog:
    """Get the shared catalog instance."""
    global _catalog_instance
    if _catalog_instance is None:
        _catalog_instance = MedicationCatalog()
    return _catalog_instance
