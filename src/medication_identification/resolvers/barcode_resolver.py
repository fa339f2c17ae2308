# ============================================================================
# src/medication_identification/resolvers/barcode_resolver.py
# ============================================================================
"""
Barcode Resolver

Exact catalog lookup of a decoded barcode. Trimming is the only
normalization. A miss returns None and never raises.
"""

import logging
from typing import Optional

from ..constants.medication_catalog import MedicationCatalog, get_catalog
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, SourceKind
from .record_builder import build_catalog_record

logger = logging.getLogger(__name__)


def resolve_by_barcode(
    code: Optional[str],
    region: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
    catalog: Optional[MedicationCatalog] = None,
) -> Optional[MedicationRecord]:
    """
    Resolve a barcode against the catalog.

    Args:
        code: Decoded barcode value
        region: Only match entries sold here (None = any region)
        config: Pipeline config (confidence for a barcode hit)
        catalog: Catalog to search (defaults to the shared one)

    Returns:
        BARCODE_CATALOG record, or None on a miss
    """
    if not code or not code.strip():
        return None

    config = config or get_pipeline_config()
    catalog = catalog or get_catalog()

    entry = catalog.find_by_barcode(code, region=region)
    if entry is None:
        logger.debug(f"Barcode miss: {code.strip()}")
        return None

    logger.info(f"Barcode hit: {code.strip()} -> {entry.product_name}")
    return build_catalog_record(
        entry,
        source_kind=SourceKind.BARCODE_CATALOG,
        confidence=config.barcode_match_confidence,
        barcode=code,
        region=region,
    )
