# ============================================================================
# src/medication_identification/constants/__init__.py
# ============================================================================

from .catalog_entries import CatalogEntry, CATALOG_ENTRIES
from .medication_catalog import MedicationCatalog, get_catalog, normalize_strength
