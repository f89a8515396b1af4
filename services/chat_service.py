import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from flask import current_app

from services.gemini_service import get_client
from services.prompt_builder import (
    ASSISTANT_ROLE,
    ChatMessage,
    GenerationOptions,
    build_chat_prompt,
    build_recipe_prompt,
    ensure_user_turn,
)
from services.recipe_parser import RecipeDraft, parse_completion

logger = logging.getLogger(__name__)

COUNTER_EXTENSION_KEY = "generation_counter"

DIRECT_FALLBACKS = {
    "title": "Untitled Recipe",
    "description": "No description provided",
    "ingredients": "No ingredients provided",
    "instructions": "No instructions provided",
}


class GenerationCounter:
    """Process-wide count of successful generations, for operators only."""

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            return self._count

    @property
    def value(self) -> int:
        with self._lock:
            return self._count


@dataclass
class ChatReply:
    message: ChatMessage
    recipe: Dict[str, Any]
    draft: RecipeDraft

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": {
                "role": self.message.role,
                "content": self.message.content,
                "recipe": self.recipe,
            },
            "recipe": self.recipe,
        }


def recipe_envelope(draft: RecipeDraft) -> Dict[str, Any]:
    """Display summary attached to an assistant message."""
    return {
        "title": draft.title,
        "time": f"{draft.prep_time} minutes",
        "servings": f"{draft.servings} servings",
        "recipeData": draft.to_dict(),
    }


class ChatOrchestrator:
    """
    Drive one stateless chat turn or one-shot generation.

    A chat turn goes: validate history, build prompt, call the model, parse,
    assemble the reply. Provider and parser errors propagate unchanged; there
    is no retry.
    """

    def __init__(
        self,
        client,
        counter: GenerationCounter,
        balanced_braces: bool = False,
    ) -> None:
        self.client = client
        self.counter = counter
        self.balanced_braces = balanced_braces

    def chat(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> ChatReply:
        ensure_user_turn(messages)
        options = options or GenerationOptions()

        prompt = build_chat_prompt(messages, options)
        completion = self.client.generate(prompt)
        parsed = parse_completion(
            completion,
            fallbacks={"mealType": (options.meal_type or "").strip()},
            balanced=self.balanced_braces,
        )

        count = self.counter.increment()
        logger.info("Generation #%d (chat, %d turns): %s", count, len(messages), parsed.recipe.title)

        return ChatReply(
            message=ChatMessage(role=ASSISTANT_ROLE, content=parsed.conversational_reply),
            recipe=recipe_envelope(parsed.recipe),
            draft=parsed.recipe,
        )

    def generate_recipe(self, options: GenerationOptions) -> RecipeDraft:
        prompt = build_recipe_prompt(options)
        completion = self.client.generate(prompt)

        fallbacks = dict(DIRECT_FALLBACKS)
        fallbacks["mealType"] = (options.meal_type or "").strip() or "Any meal"
        parsed = parse_completion(
            completion,
            fallbacks=fallbacks,
            balanced=self.balanced_braces,
        )

        count = self.counter.increment()
        logger.info("Generation #%d (direct) prompt=%r", count, options.prompt)
        return parsed.recipe


def get_counter() -> GenerationCounter:
    counter = current_app.extensions.get(COUNTER_EXTENSION_KEY)
    if counter is None:
        counter = GenerationCounter()
        current_app.extensions[COUNTER_EXTENSION_KEY] = counter
    return counter


def get_orchestrator() -> ChatOrchestrator:
    return ChatOrchestrator(
        client=get_client(),
        counter=get_counter(),
        balanced_braces=current_app.config.get("PARSER_BALANCED_BRACES", False),
    )
