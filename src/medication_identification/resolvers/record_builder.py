# ============================================================================
# src/medication_identification/resolvers/record_builder.py
# ============================================================================
"""
Catalog Entry -> MedicationRecord

Fills the clinical fields a catalog row does not carry from the drug
reference tables, and stamps source and confidence.
"""

from typing import Optional

from ..constants.catalog_entries import CatalogEntry
from ..constants import drug_reference
from ..core.context import MedicationRecord, SourceKind, UsageInstructions


def build_catalog_record(
    entry: CatalogEntry,
    source_kind: SourceKind,
    confidence: float,
    barcode: Optional[str] = None,
    region: Optional[str] = None,
) -> MedicationRecord:
    """
    Build a record from a catalog hit.

    Args:
        entry: Matched catalog row
        source_kind: BARCODE_CATALOG or TEXT_CATALOG
        confidence: Fixed confidence for that source
        barcode: Scanned code (falls back to the entry's own barcode)
        region: Requested region, used for attribution and as country fallback

    Returns:
        MedicationRecord
    """
    region_label = (region or entry.country or "GLOBAL").upper()

    return MedicationRecord(
        brand_name=entry.product_name,
        generic_name=entry.generic_name,
        strength=entry.strength,
        form=entry.form,
        manufacturer=entry.manufacturer,
        barcode=(barcode.strip() if barcode else None) or entry.barcode,
        confidence_score=confidence,
        source_kind=source_kind,
        active_ingredients=[entry.generic_name],
        indications=drug_reference.indications_for(entry.generic_name),
        warnings=drug_reference.warnings_for(entry.generic_name),
        usage_instructions=UsageInstructions(
            route=drug_reference.route_for_form(entry.form),
            special_instructions=drug_reference.special_instructions_for(entry.generic_name),
        ),
        storage_instructions=drug_reference.DEFAULT_STORAGE,
        country_code=entry.country or region_label,
        attribution=f"Known-medication catalog ({region_label})",
    )
