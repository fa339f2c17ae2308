# ============================================================================
# src/medication_identification/resolvers/text_matcher.py
# ============================================================================
"""
Text Matcher

Resolves OCR text against the catalog. Rules run in a fixed order and the
first hit wins; there is no scoring across candidates:
1. Product name contained in the text (whole catalog, in order)
   then generic name contained in the text
2. Any product/generic name token longer than 3 characters contained in the text
3. Dosage pattern (e.g. '500 mg') when the text also names a very common
   generic drug; matched against catalog strengths
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..constants.catalog_entries import CatalogEntry
from ..constants.medication_catalog import MedicationCatalog, get_catalog
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, SourceKind
from .record_builder import build_catalog_record

logger = logging.getLogger(__name__)

DOSAGE_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*(mg|ml|g)\b', re.IGNORECASE)


class MatchRule(str, Enum):
    PRODUCT_NAME = "product_name"
    GENERIC_NAME = "generic_name"
    TOKEN = "token"
    DOSAGE = "dosage"


@dataclass(frozen=True)
class TextMatch:
    entry: CatalogEntry
    rule: MatchRule


def extract_dosage(text: str) -> Optional[str]:
    """First '<number><mg|ml|g>' in the text, normalized: '500 MG' -> '500mg'."""
    match = DOSAGE_PATTERN.search(text or "")
    if not match:
        return None
    return f"{match.group(1)}{match.group(2).lower()}"


def find_text_match(
    text: Optional[str],
    region: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
    catalog: Optional[MedicationCatalog] = None,
) -> Optional[TextMatch]:
    """Run the matching rules in order and report which one hit."""
    if not text or not text.strip():
        return None

    config = config or get_pipeline_config()
    catalog = catalog or get_catalog()
    search_text = text.lower()

    entry = catalog.find_by_product_name(search_text, region=region)
    if entry:
        return TextMatch(entry, MatchRule.PRODUCT_NAME)

    entry = catalog.find_by_generic_name(search_text, region=region)
    if entry:
        return TextMatch(entry, MatchRule.GENERIC_NAME)

    entry = catalog.find_by_token(search_text, region=region)
    if entry:
        return TextMatch(entry, MatchRule.TOKEN)

    dosage = extract_dosage(search_text)
    if dosage and any(k in search_text for k in config.common_generic_keywords):
        entry = catalog.find_by_strength(dosage, region=region)
        if entry:
            return TextMatch(entry, MatchRule.DOSAGE)

    return None


def resolve_by_text(
    text: Optional[str],
    region: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
    catalog: Optional[MedicationCatalog] = None,
) -> Optional[MedicationRecord]:
    """
    Resolve recognized text against the catalog.

    Args:
        text: OCR output (any case)
        region: Only match entries sold here (None = any region)
        config: Pipeline config (confidence, common-generic keywords)
        catalog: Catalog to search (defaults to the shared one)

    Returns:
        TEXT_CATALOG record, or None on a miss
    """
    config = config or get_pipeline_config()
    match = find_text_match(text, region=region, config=config, catalog=catalog)
    if match is None:
        return None

    logger.info(f"Text match ({match.rule.value}): {match.entry.product_name}")
    return build_catalog_record(
        match.entry,
        source_kind=SourceKind.TEXT_CATALOG,
        confidence=config.text_match_confidence,
        region=region,
    )
