"""
Turn a free-form model completion into a recipe draft.

Models are asked for a bare JSON object but regularly add commentary, wrap the
object in markdown fences or send numbers as text ("30 minutes"). The parser
accepts all of that and only fails when no JSON object can be recovered.
"""
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from services.errors import MalformedRecipeJSON

logger = logging.getLogger(__name__)

DEFAULT_PREP_TIME = 30
DEFAULT_SERVINGS = 4
FILLER_REPLY = "Voilà! Here is a recipe I think you will love."

TEXT_FIELDS = ("title", "description", "ingredients", "instructions", "mealType")

# Opening fences may carry a language tag (```json); both ends are dropped.
_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_DIGITS_RE = re.compile(r"\d+")

RawField = Union[int, float, str, None]


@dataclass
class RecipeDraft:
    title: str
    description: str
    ingredients: str
    instructions: str
    meal_type: str
    prep_time: int
    servings: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "ingredients": self.ingredients,
            "instructions": self.instructions,
            "mealType": self.meal_type,
            "prepTime": self.prep_time,
            "servings": self.servings,
        }


@dataclass
class ParsedCompletion:
    conversational_reply: str
    recipe: RecipeDraft


def coerce_int(value: RawField, default: int) -> int:
    """
    Coerce a number-or-text field into a positive integer.

    Numbers are truncated; text yields its first run of digits. Anything that
    does not produce a positive value falls back to ``default``.
    """
    if isinstance(value, bool) or (isinstance(value, float) and not math.isfinite(value)):
        return default
    if isinstance(value, (int, float)):
        number = int(value)
    elif isinstance(value, str):
        match = _DIGITS_RE.search(value)
        if not match:
            return default
        number = int(match.group(0))
    else:
        return default
    return number if number > 0 else default


def _coerce_text(value: Any, fallback: str) -> str:
    if value is None:
        return fallback
    if isinstance(value, (list, tuple)):
        value = "\n".join(str(item).strip() for item in value if str(item).strip())
    elif not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or fallback


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text)


def _balanced_object_span(text: str, start: int) -> Optional[int]:
    """Index of the brace closing the object opened at ``start``, honouring strings."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_candidate(text: str, balanced: bool = False) -> Tuple[str, str]:
    """
    Split ``text`` into (leading text, JSON candidate).

    The default is greedy: everything from the first "{" to the last "}".
    This mis-extracts when a brace appears in prose after the object.
    ``balanced=True`` stops at the brace that closes the first object instead.
    """
    start = text.find("{")
    if start == -1:
        raise MalformedRecipeJSON("No JSON object found in model response")

    if balanced:
        end = _balanced_object_span(text, start)
        if end is None:
            raise MalformedRecipeJSON("Unterminated JSON object in model response")
    else:
        end = text.rfind("}")
        if end < start:
            raise MalformedRecipeJSON("No JSON object found in model response")

    return text[:start], text[start : end + 1]


def draft_from_payload(
    payload: Mapping[str, Any],
    fallbacks: Optional[Mapping[str, str]] = None,
    default_prep_time: int = DEFAULT_PREP_TIME,
    default_servings: int = DEFAULT_SERVINGS,
) -> RecipeDraft:
    """Build a draft from decoded JSON, tolerating missing or mistyped fields."""
    fallbacks = fallbacks or {}
    text = {
        name: _coerce_text(payload.get(name), fallbacks.get(name, ""))
        for name in TEXT_FIELDS
    }
    return RecipeDraft(
        title=text["title"],
        description=text["description"],
        ingredients=text["ingredients"],
        instructions=text["instructions"],
        meal_type=text["mealType"],
        prep_time=coerce_int(payload.get("prepTime"), default_prep_time),
        servings=coerce_int(payload.get("servings"), default_servings),
    )


def parse_completion(
    text: str,
    fallbacks: Optional[Mapping[str, str]] = None,
    balanced: bool = False,
) -> ParsedCompletion:
    """
    Parse a raw completion into a conversational reply plus a recipe draft.

    Raises MalformedRecipeJSON when no decodable JSON object is present.
    """
    cleaned = strip_code_fences(text or "")
    leading, candidate = extract_json_candidate(cleaned, balanced=balanced)

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Could not decode recipe JSON: %s", exc)
        raise MalformedRecipeJSON(f"Invalid recipe JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedRecipeJSON("Recipe JSON is not an object")

    reply = leading.strip() or FILLER_REPLY
    return ParsedCompletion(
        conversational_reply=reply,
        recipe=draft_from_payload(payload, fallbacks=fallbacks),
    )
