# ============================================================================
# src/medication_identification/constants/catalog_entries.py
# ============================================================================
"""
Known-Medication Catalog Data

Static reference rows for the regions the app ships in (US, CA, UK, EU,
AZ, TR). Order matters: when several entries match the same input, the
earliest row wins.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class CatalogEntry:
    product_name: str
    generic_name: str
    manufacturer: str
    strength: str
    form: str
    country: str
    barcode: Optional[str] = None
    regions: Tuple[str, ...] = ()
    registration_number: Optional[str] = None

    def sold_in(self, region: Optional[str]) -> bool:
        """True when the entry applies to the region (None/GLOBAL means any)."""
        if not region or region.upper() == "GLOBAL":
            return True
        region = region.upper()
        return region in self.regions or self.country == region


CATALOG_ENTRIES: Tuple[CatalogEntry, ...] = (
    # North America
    CatalogEntry(
        product_name="Tylenol",
        generic_name="Acetaminophen",
        manufacturer="Johnson & Johnson",
        strength="500mg",
        form="tablet",
        country="US",
        barcode="12345678901",
        regions=("US", "CA"),
    ),
    CatalogEntry(
        product_name="Advil",
        generic_name="Ibuprofen",
        manufacturer="Pfizer",
        strength="200mg",
        form="tablet",
        country="US",
        barcode="12345678902",
        regions=("US", "CA"),
    ),
    CatalogEntry(
        product_name="Coumadin",
        generic_name="Warfarin",
        manufacturer="Bristol-Myers Squibb",
        strength="5mg",
        form="tablet",
        country="US",
        regions=("US", "CA"),
    ),
    CatalogEntry(
        product_name="Lantus",
        generic_name="Insulin glargine",
        manufacturer="Sanofi",
        strength="100 units/ml",
        form="injection",
        country="US",
        regions=("US", "CA", "UK", "EU"),
    ),

    # UK / EU
    CatalogEntry(
        product_name="Panadol",
        generic_name="Paracetamol",
        manufacturer="GSK",
        strength="500mg",
        form="tablet",
        country="UK",
        barcode="5000159461788",
        regions=("UK", "EU"),
    ),
    CatalogEntry(
        product_name="Lanoxin",
        generic_name="Digoxin",
        manufacturer="Aspen",
        strength="0.25mg",
        form="tablet",
        country="UK",
        regions=("UK", "EU"),
    ),
    CatalogEntry(
        product_name="Priadel",
        generic_name="Lithium carbonate",
        manufacturer="Essential Pharma",
        strength="400mg",
        form="prolonged-release tablet",
        country="UK",
        regions=("UK",),
    ),

    # Azerbaijan / Turkey
    CatalogEntry(
        product_name="Aspirin Cardio",
        generic_name="Acetylsalicylic acid",
        manufacturer="Bayer",
        strength="100mg",
        form="tablet",
        country="AZ",
        barcode="4770251043697",
        regions=("AZ", "TR"),
        registration_number="AZ/DRG/0001",
    ),
    CatalogEntry(
        product_name="Aspirin C",
        generic_name="Acetylsalicylic acid + Ascorbic acid",
        manufacturer="Bayer",
        strength="400mg + 240mg",
        form="effervescent tablet",
        country="AZ",
        barcode="8901391509173",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Lisinopril-Teva",
        generic_name="Lisinopril",
        manufacturer="Teva",
        strength="10mg",
        form="tablet",
        country="AZ",
        barcode="5901234567890",
        regions=("AZ",),
        registration_number="AZ/DRG/0234",
    ),
    CatalogEntry(
        product_name="Atorvastatin Pfizer",
        generic_name="Atorvastatin",
        manufacturer="Pfizer",
        strength="20mg",
        form="tablet",
        country="AZ",
        barcode="6901234567891",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Metoprolol Sandoz",
        generic_name="Metoprolol tartrate",
        manufacturer="Sandoz",
        strength="50mg",
        form="tablet",
        country="AZ",
        barcode="7901234567892",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Metformin Teva",
        generic_name="Metformin hydrochloride",
        manufacturer="Teva",
        strength="850mg",
        form="tablet",
        country="AZ",
        barcode="8901234567893",
        regions=("AZ",),
        registration_number="AZ/DRG/0156",
    ),
    CatalogEntry(
        product_name="Glibenclamide Alkaloid",
        generic_name="Glibenclamide",
        manufacturer="Alkaloid",
        strength="5mg",
        form="tablet",
        country="AZ",
        barcode="9901234567894",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Ventolin Inhaler",
        generic_name="Salbutamol",
        manufacturer="GSK",
        strength="100mcg/dose",
        form="inhaler",
        country="AZ",
        barcode="1001234567895",
        regions=("AZ",),
        registration_number="AZ/DRG/0078",
    ),
    CatalogEntry(
        product_name="Bromhexine Berlin Chemie",
        generic_name="Bromhexine hydrochloride",
        manufacturer="Berlin Chemie",
        strength="8mg",
        form="tablet",
        country="AZ",
        barcode="1101234567896",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Omeprazole Krka",
        generic_name="Omeprazole",
        manufacturer="Krka",
        strength="20mg",
        form="capsule",
        country="AZ",
        barcode="1201234567897",
        regions=("AZ",),
        registration_number="AZ/DRG/0189",
    ),
    CatalogEntry(
        product_name="Amoxicillin Sandoz",
        generic_name="Amoxicillin",
        manufacturer="Sandoz",
        strength="500mg",
        form="capsule",
        country="AZ",
        barcode="1401234567899",
        regions=("AZ",),
        registration_number="AZ/DRG/0045",
    ),
    CatalogEntry(
        product_name="Azithromycin Teva",
        generic_name="Azithromycin",
        manufacturer="Teva",
        strength="250mg",
        form="tablet",
        country="AZ",
        barcode="1501234567800",
        regions=("AZ",),
    ),
    CatalogEntry(
        product_name="Paracetamol Berlin Chemie",
        generic_name="Paracetamol",
        manufacturer="Berlin Chemie",
        strength="500mg",
        form="tablet",
        country="AZ",
        barcode="1601234567801",
        regions=("AZ",),
        registration_number="AZ/DRG/0012",
    ),
    CatalogEntry(
        product_name="Ibuprofen Alkaloid",
        generic_name="Ibuprofen",
        manufacturer="Alkaloid",
        strength="400mg",
        form="tablet",
        country="AZ",
        barcode="1701234567802",
        regions=("AZ", "TR"),
    ),
    CatalogEntry(
        product_name="Paracetamol Azerfarm",
        generic_name="Paracetamol",
        manufacturer="Azerfarm",
        strength="500mg",
        form="tablet",
        country="AZ",
        barcode="2001234567805",
        regions=("AZ",),
        registration_number="AZ/DRG/L001",
    ),
    CatalogEntry(
        product_name="Validol Biolans",
        generic_name="Menthyl isovalerate",
        manufacturer="Biolans",
        strength="60mg",
        form="tablet",
        country="AZ",
        barcode="2101234567806",
        regions=("AZ",),
        registration_number="AZ/DRG/L002",
    ),
)
