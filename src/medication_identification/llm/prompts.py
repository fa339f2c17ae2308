# ============================================================================
# src/medication_identification/llm/prompts.py
# ============================================================================
"""
Medication Extraction Prompt

The response parser depends on this contract:
- one JSON object, exact key set below
- no prose, no Markdown fences
- all free-text values in the caller's language
- {"error": "..."} when no medication is present
"""

import json
from typing import Optional

LANGUAGE_NAMES = {
    "en": "English",
    "az": "Azerbaijani",
    "ru": "Russian",
    "tr": "Turkish",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "ar": "Arabic",
}

# Field -> description shown to the model
RECORD_SHAPE = {
    "brand_name": "exact brand name printed on the package",
    "generic_name": "active ingredient / generic name",
    "strength": "dosage strength with unit (e.g. 500mg, 5ml)",
    "form": "dosage form (tablet, capsule, syrup, injection, ...)",
    "manufacturer": "company name if printed",
    "confidence_score": "number between 0.0 and 1.0",
    "active_ingredients": ["active ingredients"],
    "indications": ["what it treats"],
    "contraindications": ["when not to use"],
    "warnings": ["important warnings"],
    "side_effects": ["possible side effects"],
    "usage_instructions": {
        "dosage": "how much to take",
        "frequency": "how often",
        "duration": "how long",
        "timing": "when to take (with food, etc.)",
        "route": "how to administer",
        "special_instructions": ["special notes"],
    },
    "storage_instructions": "storage requirements",
    "drug_interactions": ["medications to avoid"],
    "pregnancy_safety": "pregnancy safety information",
    "age_restrictions": "age limitations if any",
    "expiry_date": "expiry date if printed",
    "country_code": "ISO country code of the market",
}

MAX_PROMPT_TEXT = 5000


def language_name(code: str) -> str:
    code = (code or "en").lower()
    return LANGUAGE_NAMES.get(code.split("-")[0], code)


def build_extraction_prompt(
    text: str,
    barcode: Optional[str] = None,
    language: str = "en",
    region: str = "US",
) -> str:
    """
    Build the extraction prompt.

    Args:
        text: OCR text from the package (may be empty when only a barcode exists)
        barcode: Decoded barcode not found in the catalog
        language: Language code for all free-text answer fields
        region: Market region code

    Returns:
        Prompt string
    """
    lang = language_name(language)
    region = (region or "US").upper()
    shape = json.dumps(RECORD_SHAPE, indent=2, ensure_ascii=False)

    barcode_line = f"BARCODE: {barcode}\n" if barcode else ""
    package_text = (text or "").strip()[:MAX_PROMPT_TEXT] or "(no readable text)"

    return f"""You are a pharmaceutical expert. Identify the medication described by the package text below.

RULES:
1. Extract only regulated medications. Ignore food, vitamins and supplements unless they are registered medicines.
2. Write every free-text value in {lang}.
3. Be conservative with confidence_score: use 0.3-0.7 when uncertain.
4. If no medication can be identified, return exactly {{"error": "No medication found"}}.
5. Use "{region}" as country_code unless the package clearly shows another market.

PACKAGE TEXT:
\"\"\"
{package_text}
\"\"\"
{barcode_line}REGION: {region}
LANGUAGE: {lang}

Return a single JSON object with exactly these keys:
{shape}

Respond with JSON only. No prose, no explanations, no Markdown code fences."""
