# ============================================================================
# src/medication_identification/core/context/medication_record.py
# ============================================================================
"""
Resolved medication representation
- Identity (brand, generic, strength, form, manufacturer)
- Clinical reference lists
- Usage instructions
- Confidence and provenance
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import SourceKind
from ..config import get_pipeline_config


def coerce_confidence(value: Any) -> Optional[float]:
    """Finite number (or numeric string) -> float; anything else -> None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


@dataclass
class UsageInstructions:
    dosage: str = "As directed by physician"
    frequency: str = "As prescribed"
    duration: str = "As prescribed"
    timing: str = "As directed"
    route: str = "oral"
    special_instructions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
            "timing": self.timing,
            "route": self.route,
            "special_instructions": list(self.special_instructions),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UsageInstructions":
        data = data or {}
        defaults = cls()
        return cls(
            dosage=data.get("dosage") or defaults.dosage,
            frequency=data.get("frequency") or defaults.frequency,
            duration=data.get("duration") or defaults.duration,
            timing=data.get("timing") or defaults.timing,
            route=data.get("route") or defaults.route,
            special_instructions=list(data.get("special_instructions") or []),
        )


@dataclass
class MedicationRecord:
    brand_name: str
    confidence_score: float
    source_kind: SourceKind

    generic_name: Optional[str] = None
    strength: Optional[str] = None
    form: Optional[str] = None
    manufacturer: Optional[str] = None
    barcode: Optional[str] = None

    active_ingredients: List[str] = field(default_factory=list)
    indications: List[str] = field(default_factory=list)
    contraindications: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    side_effects: List[str] = field(default_factory=list)
    drug_interactions: List[str] = field(default_factory=list)

    usage_instructions: UsageInstructions = field(default_factory=UsageInstructions)
    storage_instructions: Optional[str] = None
    pregnancy_safety: Optional[str] = None
    age_restrictions: Optional[str] = None
    expiry_date: Optional[str] = None

    # Provenance
    country_code: Optional[str] = None
    attribution: Optional[str] = None

    def __post_init__(self):
        confidence = coerce_confidence(self.confidence_score)
        if confidence is None:
            confidence = get_pipeline_config().default_ai_confidence
        self.confidence_score = max(0.0, min(1.0, confidence))

    @property
    def is_degraded(self) -> bool:
        return self.source_kind == SourceKind.DEGRADED

    @property
    def has_brand(self) -> bool:
        return bool(self.brand_name and self.brand_name.strip())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for persistence and the HTTP API"""
        return {
            "brand_name": self.brand_name,
            "generic_name": self.generic_name,
            "strength": self.strength,
            "form": self.form,
            "manufacturer": self.manufacturer,
            "barcode": self.barcode,
            "active_ingredients": list(self.active_ingredients),
            "indications": list(self.indications),
            "contraindications": list(self.contraindications),
            "warnings": list(self.warnings),
            "side_effects": list(self.side_effects),
            "drug_interactions": list(self.drug_interactions),
            "usage_instructions": self.usage_instructions.to_dict(),
            "storage_instructions": self.storage_instructions,
            "pregnancy_safety": self.pregnancy_safety,
            "age_restrictions": self.age_restrictions,
            "expiry_date": self.expiry_date,
            "confidence_score": self.confidence_score,
            "source_kind": self.source_kind.value,
            "country_code": self.country_code,
            "attribution": self.attribution,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicationRecord":
        """Rebuild a record previously produced by to_dict()"""
        return cls(
            brand_name=data.get("brand_name", ""),
            confidence_score=data.get("confidence_score", 0.0),
            source_kind=SourceKind(data.get("source_kind", SourceKind.AI_EXTRACTION.value)),
            generic_name=data.get("generic_name"),
            strength=data.get("strength"),
            form=data.get("form"),
            manufacturer=data.get("manufacturer"),
            barcode=data.get("barcode"),
            active_ingredients=list(data.get("active_ingredients") or []),
            indications=list(data.get("indications") or []),
            contraindications=list(data.get("contraindications") or []),
            warnings=list(data.get("warnings") or []),
            side_effects=list(data.get("side_effects") or []),
            drug_interactions=list(data.get("drug_interactions") or []),
            usage_instructions=UsageInstructions.from_dict(data.get("usage_instructions")),
            storage_instructions=data.get("storage_instructions"),
            pregnancy_safety=data.get("pregnancy_safety"),
            age_restrictions=data.get("age_restrictions"),
            expiry_date=data.get("expiry_date"),
            country_code=data.get("country_code"),
            attribution=data.get("attribution"),
        )
