import logging

from flask import Blueprint, jsonify

from schemas import ChatRequest, GenerateRecipeRequest, parse_body
from services.chat_service import get_counter, get_orchestrator
from services.prompt_builder import ChatMessage, GenerationOptions
from services.rate_limits import ai_limit

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/generate-recipe", methods=["POST"])
@ai_limit
def generate_recipe():
    data = parse_body(GenerateRecipeRequest, "Prompt is required")
    options = GenerationOptions(
        prompt=data.prompt,
        meal_type=data.meal_type,
        main_ingredient=data.main_ingredient,
        dietary=data.dietary,
    )
    draft = get_orchestrator().generate_recipe(options)
    return jsonify(draft.to_dict())


@chat_bp.route("/chat", methods=["POST"])
@ai_limit
def chat():
    data = parse_body(ChatRequest, "Messages array is required")
    messages = [
        ChatMessage(role=message.role, content=message.content, recipe=message.recipe)
        for message in data.messages
    ]
    options = GenerationOptions(
        meal_type=data.meal_type,
        main_ingredient=data.main_ingredient,
        dietary=data.dietary,
    )
    reply = get_orchestrator().chat(messages, options)
    return jsonify(reply.to_dict())


@chat_bp.route("/generations", methods=["GET"])
def generations():
    return jsonify({"count": get_counter().value})
