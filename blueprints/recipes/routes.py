import logging

from flask import Blueprint, jsonify, request

from schemas import RecipeCreate, RecipeUpdate, parse_body
from services.errors import NotFound, ValidationError
from services.recipe_store import get_recipe_store

logger = logging.getLogger(__name__)

recipes_bp = Blueprint("recipes", __name__)

# Columns that may be cleared to null through PATCH.
NULLABLE_FIELDS = {"user_id"}


def _owner_filter():
    raw = request.args.get("userId")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(
            "Invalid userId",
            details=[{"field": "userId", "message": "must be an integer"}],
        ) from None


def _get_or_404(recipe_id: int):
    recipe = get_recipe_store().get_by_id(recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found")
    return recipe


@recipes_bp.route("/recipes", methods=["GET"])
def list_recipes():
    recipes = get_recipe_store().list(owner_id=_owner_filter())
    return jsonify([recipe.to_dict() for recipe in recipes])


@recipes_bp.route("/recipes/<int:recipe_id>", methods=["GET"])
def get_recipe(recipe_id: int):
    return jsonify(_get_or_404(recipe_id).to_dict())


@recipes_bp.route("/recipes", methods=["POST"])
def create_recipe():
    data = parse_body(RecipeCreate, "Invalid recipe data")
    recipe = get_recipe_store().create(data.model_dump())
    return jsonify(recipe.to_dict()), 201


@recipes_bp.route("/recipes/<int:recipe_id>", methods=["PATCH"])
def update_recipe(recipe_id: int):
    data = parse_body(RecipeUpdate, "Invalid recipe data")
    fields = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    recipe = get_recipe_store().update(recipe_id, fields)
    if recipe is None:
        raise NotFound("Recipe not found")
    return jsonify(recipe.to_dict())


@recipes_bp.route("/recipes/<int:recipe_id>", methods=["DELETE"])
def delete_recipe(recipe_id: int):
    if not get_recipe_store().delete(recipe_id):
        raise NotFound("Recipe not found")
    return "", 204


@recipes_bp.route("/recipes/<int:recipe_id>/save", methods=["POST", "DELETE"])
def toggle_saved(recipe_id: int):
    saved = request.method == "POST"
    recipe = get_recipe_store().set_saved(recipe_id, saved)
    if recipe is None:
        raise NotFound("Recipe not found")
    return jsonify(recipe.to_dict())


@recipes_bp.route("/users/<int:user_id>/saved-recipes", methods=["GET"])
def saved_recipes(user_id: int):
    recipes = get_recipe_store().list_saved(user_id)
    return jsonify([recipe.to_dict() for recipe in recipes])
