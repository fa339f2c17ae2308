# ============================================================================
# src/medication_identification/core/context/risk_assessment.py
# ============================================================================
"""
Validator output. Derived on every validation, never persisted on its own.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .enums import RiskFlag

@dataclass
class RiskAssessment:
    warnings: List[str] = field(default_factory=list)
    risk_flags: List[RiskFlag] = field(default_factory=list)
    blocks_presentation: bool = False

    @property
    def show_warnings(self) -> bool:
        return bool(self.warnings)

    def has_flag(self, flag: RiskFlag) -> bool:
        return flag in self.risk_flags

    def flag_values(self) -> List[str]:
        return [flag.value for flag in self.risk_flags]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warnings": list(self.warnings),
            "risk_flags": self.flag_values(),
            "blocks_presentation": self.blocks_presentation,
            "show_warnings": self.show_warnings,
        }
