from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from services.errors import InvalidConversationState

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
ROLES = (USER_ROLE, ASSISTANT_ROLE)

PERSONA_INSTRUCTION = (
    "You are Chef Pierre, the warm and slightly theatrical French chef behind "
    "CuisineMuse. Help the user decide what to cook, keep your replies short "
    "and friendly, and always propose one concrete recipe."
)

RECIPE_JSON_INSTRUCTION = (
    "After a short conversational reply, return the recipe as a single JSON "
    "object with exactly these fields: "
    '{"title": string, "description": string, "ingredients": string, '
    '"instructions": string, "mealType": string, '
    '"prepTime": number of minutes, "servings": number}. '
    "Put each ingredient and each instruction step on its own line. "
    "Do not wrap the JSON in markdown code fences and do not add any other braces."
)

_ROLE_LABELS = {USER_ROLE: "User", ASSISTANT_ROLE: "Assistant"}


@dataclass
class ChatMessage:
    role: str
    content: str
    recipe: Optional[Dict[str, Any]] = None


@dataclass
class GenerationOptions:
    """Free-text prompt plus the optional facets picked in the UI."""

    prompt: str = ""
    meal_type: Optional[str] = None
    main_ingredient: Optional[str] = None
    dietary: Optional[str] = None


def _present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def ensure_user_turn(messages: Sequence[ChatMessage]) -> None:
    """Raise InvalidConversationState unless the history ends on a user message."""
    if not messages:
        raise InvalidConversationState("Messages array is required")
    last = messages[-1]
    if last.role != USER_ROLE or not (last.content or "").strip():
        raise InvalidConversationState("Last message must be from user with content")


def facet_clauses(options: GenerationOptions) -> List[str]:
    """One clause per present facet, always meal type, main ingredient, dietary."""
    clauses = []
    meal_type = _present(options.meal_type)
    if meal_type:
        clauses.append(f"The user wants a {meal_type.lower()} recipe.")
    main_ingredient = _present(options.main_ingredient)
    if main_ingredient:
        clauses.append(f"The main ingredient should be {main_ingredient.lower()}.")
    dietary = _present(options.dietary)
    if dietary:
        clauses.append(f"The recipe must respect a {dietary.lower()} diet.")
    return clauses


def build_chat_prompt(
    messages: Sequence[ChatMessage],
    options: Optional[GenerationOptions] = None,
) -> str:
    """
    Render the persona, facets, JSON contract and transcript into one block.

    The block ends with an ``Assistant:`` cue so the model answers in persona.
    """
    ensure_user_turn(messages)
    options = options or GenerationOptions()

    lines = [PERSONA_INSTRUCTION]
    lines.extend(facet_clauses(options))
    lines.append(RECIPE_JSON_INSTRUCTION)
    lines.append("")
    lines.append("Conversation so far:")
    for message in messages:
        label = _ROLE_LABELS.get(message.role, message.role.capitalize())
        lines.append(f"{label}: {message.content}")
    lines.append(f"{_ROLE_LABELS[ASSISTANT_ROLE]}:")
    return "\n".join(lines)


def build_recipe_prompt(options: GenerationOptions) -> str:
    """Prompt for one-shot generation from a single request and its facets."""
    meal_type = _present(options.meal_type) or "Any meal"
    main_ingredient = _present(options.main_ingredient) or "any ingredients"
    dietary = _present(options.dietary)
    dietary_clause = (
        f"with {dietary} dietary restrictions"
        if dietary
        else "with no specific dietary restrictions"
    )

    return (
        f"Create a detailed recipe for a {meal_type} using {main_ingredient} {dietary_clause}.\n"
        f'The user\'s specific request is: "{options.prompt.strip()}"\n'
        "Provide a creative title, a brief description (2-3 sentences), the "
        "ingredients with measurements, step by step instructions, the estimated "
        "preparation time in minutes and the number of servings.\n"
        "Respond ONLY with a JSON object of this shape: "
        '{"title": string, "description": string, "ingredients": string, '
        f'"instructions": string, "mealType": "{meal_type}", '
        '"prepTime": number of minutes, "servings": number}. '
        "Do not wrap it in markdown code fences."
    )
