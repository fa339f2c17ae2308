# ============================================================================
# src/medication_identification/constants/drug_reference.py
# ============================================================================
"""
Reference text attached to catalog hits.

Keyed by a generic-name fragment; the first fragment found in the
lowercased generic name wins. Not a clinical source. Just enough context
for a catalog result to be useful on screen.
"""

from typing import Dict, List

INDICATIONS: Dict[str, List[str]] = {
    "acetaminophen": ["Pain relief", "Fever reduction"],
    "paracetamol": ["Pain relief", "Fever reduction"],
    "ibuprofen": ["Pain relief", "Fever reduction", "Inflammation"],
    "acetylsalicylic acid": ["Pain relief", "Fever reduction", "Cardiovascular protection"],
    "aspirin": ["Pain relief", "Fever reduction", "Cardiovascular protection"],
    "metformin": ["Type 2 diabetes management"],
    "lisinopril": ["High blood pressure", "Heart failure"],
    "omeprazole": ["Heartburn", "GERD", "Stomach ulcers"],
    "warfarin": ["Prevention of blood clots"],
    "insulin": ["Diabetes management"],
    "digoxin": ["Heart failure", "Atrial fibrillation"],
    "lithium": ["Bipolar disorder"],
}
DEFAULT_INDICATIONS = ["As prescribed by healthcare provider"]

WARNINGS: Dict[str, List[str]] = {
    "acetaminophen": ["Do not exceed recommended dose", "Risk of liver damage with alcohol"],
    "paracetamol": ["Do not exceed recommended dose", "Risk of liver damage with alcohol"],
    "ibuprofen": ["Take with food", "May cause stomach irritation"],
    "acetylsalicylic acid": ["May cause stomach bleeding", "Not for children under 16"],
    "aspirin": ["May cause stomach bleeding", "Not for children under 16"],
    "warfarin": ["Regular INR monitoring required", "Many drug and food interactions"],
    "insulin": ["Monitor blood glucose", "Risk of hypoglycemia"],
    "digoxin": ["Narrow therapeutic range", "Report nausea or vision changes"],
    "lithium": ["Regular blood level monitoring required", "Keep fluid intake steady"],
}
DEFAULT_WARNINGS = ["Follow healthcare provider instructions"]

# Checked in order; 'effervescent tablet' resolves via 'tablet'
ROUTES: Dict[str, str] = {
    "tablet": "oral",
    "capsule": "oral",
    "syrup": "oral",
    "liquid": "oral",
    "injection": "subcutaneous or intramuscular",
    "inhaler": "inhalation",
    "cream": "topical",
    "ointment": "topical",
    "drops": "topical",
    "suppository": "rectal",
}
DEFAULT_ROUTE = "oral"

SPECIAL_INSTRUCTIONS: Dict[str, List[str]] = {
    "metformin": ["Take with meals to reduce stomach upset"],
    "omeprazole": ["Take before meals", "Swallow whole, do not chew"],
    "ibuprofen": ["Take with food or milk"],
}

DEFAULT_STORAGE = "Store in a cool, dry place away from direct sunlight"

# Used for records synthesized without any trustworthy source
GENERIC_SAFETY_WARNINGS = [
    "This medication could not be reliably identified",
    "Verify the name and dose with a pharmacist before use",
]
GENERIC_SAFETY_INSTRUCTIONS = [
    "Follow the label or your healthcare provider's instructions",
]


def _lookup(table: Dict, name: str, default):
    lower_name = (name or "").lower()
    for fragment, value in table.items():
        if fragment in lower_name:
            return list(value) if isinstance(value, list) else value
    return list(default) if isinstance(default, list) else default


def indications_for(generic_name: str) -> List[str]:
    return _lookup(INDICATIONS, generic_name, DEFAULT_INDICATIONS)


def warnings_for(generic_name: str) -> List[str]:
    return _lookup(WARNINGS, generic_name, DEFAULT_WARNINGS)


def route_for_form(form: str) -> str:
    return _lookup(ROUTES, form, DEFAULT_ROUTE)


def special_instructions_for(generic_name: str) -> List[str]:
    return _lookup(SPECIAL_INSTRUCTIONS, generic_name, [])
