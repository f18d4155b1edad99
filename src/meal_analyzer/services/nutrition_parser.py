"""
Nutrition response parser.

Turns the free-form text returned by any AI provider into a validated
NutritionRecord, and builds the vendor-agnostic prompts that ask for it.

Two extraction strategies are tried in order:
1. Structured: the outermost {...} span is decoded as JSON.
2. Free text: labelled numbers are pulled out with regular expressions.

Whichever strategy yields a candidate, that candidate is normalized and
validated once. A structured candidate that fails validation is final; the
free-text strategy only runs when no structured candidate could be extracted.
"""

import json
import logging
import math
import re
from typing import Any

from meal_analyzer.models.nutrition import (
    DEFAULT_MEAL_NAME,
    MAX_CALORIES,
    MAX_CARBS,
    MAX_FAT,
    MAX_PROTEIN,
    MIN_CALORIES,
    NutritionRecord,
)

logger = logging.getLogger(__name__)


MACRO_FIELDS = ("calories", "protein", "carbs", "fat")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_NAME = re.compile(r"(?:name|název)[\"\s:]+([^\"}\n,]+)", re.IGNORECASE)

# "1,200" is a thousands group; "2,5" is a decimal comma
_THOUSANDS = re.compile(r"\d{1,3}(?:,\d{3})+")
_NUMBER = r"(\d{1,3}(?:,\d{3})+(?!\d)|\d+(?:[.,]\d+)?)"
_SEP = r"[\"'\s:=]*"

# Patterns run against the lower-cased response, first match wins
_FREE_TEXT_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "calories": (
        re.compile(_NUMBER + r"\s*(?:kcal|kalori|calorie|cal\b)"),
        re.compile(r"(?:calories|kalorie|energy|energie)" + _SEP + _NUMBER),
    ),
    "protein": (
        re.compile(r"(?:proteins?|bílkovin[ya]?)" + _SEP + _NUMBER),
        re.compile(_NUMBER + r"\s*g?\s*(?:of\s+)?(?:protein|bílkovin)"),
    ),
    "carbs": (
        re.compile(r"(?:carbohydrates?|carbs?|sacharid[yů]?)" + _SEP + _NUMBER),
        re.compile(_NUMBER + r"\s*g?\s*(?:of\s+)?(?:carb|sacharid)"),
    ),
    "fat": (
        re.compile(r"(?:fats?|tuk[yů]?)" + _SEP + _NUMBER),
        re.compile(_NUMBER + r"\s*g?\s*(?:of\s+)?(?:fat|tuk)"),
    ),
}


# =============================================================================
# Parsing
# =============================================================================


def parse_nutrition_response(raw_response: Any) -> NutritionRecord | None:
    """
    Parse a provider response into a validated nutrition record.

    Args:
        raw_response: Raw text returned by a provider

    Returns:
        NutritionRecord, or None if nothing valid could be extracted
    """
    if not isinstance(raw_response, str) or not raw_response.strip():
        logger.error("NutritionParser: invalid response")
        return None

    candidate = _extract_structured(raw_response)
    source = "JSON"

    if candidate is None:
        candidate = _extract_free_text(raw_response)
        source = "text"

    if candidate is None:
        logger.error("NutritionParser: could not parse response")
        logger.debug(f"Original response: {raw_response[:500]}")
        return None

    normalized = _normalize(candidate)
    if not _validate_values(normalized):
        return None

    logger.info(f"NutritionParser: parsed from {source}")
    return NutritionRecord(**normalized)


def _extract_structured(raw_response: str) -> dict[str, Any] | None:
    """Decode the outermost brace span; None unless it has every required field."""
    match = _JSON_OBJECT.search(raw_response)
    if not match:
        return None

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None

    if not _has_required_fields(data):
        logger.warning(f"NutritionParser: invalid JSON structure: {data}")
        return None

    return data


def _extract_free_text(raw_response: str) -> dict[str, Any] | None:
    """Pull labelled values out of prose; None if no number is found at all."""
    lowered = raw_response.lower()
    values: dict[str, Any] = {}
    found_any = False

    for field, patterns in _FREE_TEXT_PATTERNS.items():
        value = _extract_number(lowered, patterns)
        if value is None:
            values[field] = 0
        else:
            values[field] = value
            found_any = True

    if not found_any:
        return None

    values["name"] = _extract_name(raw_response)
    logger.debug(f"NutritionParser: parsed from text: {values}")
    return values


def _extract_name(text: str) -> str | None:
    match = _NAME.search(text)
    return match.group(1).strip() if match else None


def _extract_number(text: str, patterns: tuple[re.Pattern[str], ...]) -> float | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return _to_float(match.group(1))
    return None


def _to_float(token: str) -> float:
    if _THOUSANDS.fullmatch(token):
        return float(token.replace(",", ""))
    return float(token.replace(",", "."))


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _has_required_fields(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and "name" in data
        and all(_is_number(data.get(field)) for field in MACRO_FIELDS)
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """Round numbers to integers and clean up the name."""
    name = data.get("name")
    name = str(name).strip() if name not in (None, "") else ""

    normalized: dict[str, Any] = {"name": name or DEFAULT_MEAL_NAME}
    for field in MACRO_FIELDS:
        value = data.get(field)
        normalized[field] = _round_half_up(value) if _is_number(value) else 0
    return normalized


def _validate_values(data: dict[str, Any]) -> bool:
    """Reject records that are not food or have implausible magnitudes."""
    if data["calories"] < MIN_CALORIES:
        logger.warning(f"NutritionParser: calories too low, likely not food: {data}")
        return False

    if min(data["protein"], data["carbs"], data["fat"]) < 0:
        logger.warning(f"NutritionParser: negative macro values: {data}")
        return False

    if data["protein"] == 0 and data["carbs"] == 0 and data["fat"] == 0:
        logger.warning(f"NutritionParser: all macros are zero, likely not food: {data}")
        return False

    if (
        data["calories"] > MAX_CALORIES
        or data["protein"] > MAX_PROTEIN
        or data["carbs"] > MAX_CARBS
        or data["fat"] > MAX_FAT
    ):
        logger.warning(f"NutritionParser: values too high, likely an error: {data}")
        return False

    return True


# =============================================================================
# Prompts
# =============================================================================

RESPONSE_SHAPE = """{
  "name": "meal name",
  "calories": total calories in kcal (number),
  "protein": grams of protein (number),
  "carbs": grams of carbohydrates (number),
  "fat": grams of fat (number)
}"""

PORTION_GUIDELINES = """IMPORTANT - Portion size:
- If a quantity is given (grams, ml, pieces), use it exactly
- If no quantity is given, assume a standard portion:
  * Meat/fish: ~150g
  * Side dish (rice, potatoes, pasta): ~200g cooked
  * Vegetables: ~150g
  * Bread: 1 piece = ~50-70g
  * Drinks: standard glass = 250ml"""

JSON_ONLY = "Return ONLY a valid JSON object, no other text."


def build_text_prompt(food_description: str) -> str:
    """Prompt for a free-form text meal description."""
    return (
        "Analyze the following meal and return accurate nutrition values "
        f"as JSON:\n{RESPONSE_SHAPE}\n\n"
        f"Meal: {food_description}\n\n"
        f"{PORTION_GUIDELINES}\n\n"
        f"{JSON_ONLY}"
    )


def build_image_prompt(additional_context: str = "") -> str:
    """Prompt for a meal photo, optionally with a user-supplied hint."""
    prompt = (
        "Analyze the meal in this image and return accurate nutrition values "
        f"as JSON:\n{RESPONSE_SHAPE}\n\n"
        "IMPORTANT:\n"
        "- Estimate the portion size from the visual analysis\n"
        "- If there are several dishes in the image, add them all together\n"
        "- Be as precise as possible about the quantities\n\n"
        f"{PORTION_GUIDELINES}"
    )

    if additional_context and additional_context.strip():
        prompt += f"\n\nAdditional context: {additional_context.strip()}"

    return f"{prompt}\n\n{JSON_ONLY}"


def build_audio_prompt() -> str:
    """Prompt for a spoken meal description."""
    return (
        "Transcribe this audio and then analyze the meal mentioned. Return the "
        f"result as JSON:\n{RESPONSE_SHAPE}\n\n"
        "If the speaker states a quantity, use it exactly.\n"
        f"{PORTION_GUIDELINES}\n\n"
        f"{JSON_ONLY}"
    )
