import logging
import threading
from typing import Any, List, Mapping, Optional

from flask import current_app

from extensions import db  # type: ignore
from models.recipe_model import Recipe

logger = logging.getLogger(__name__)

EXTENSION_KEY = "recipe_store"

# Model attributes callers may set; id and created_at are never writable.
WRITABLE_FIELDS = (
    "user_id",
    "title",
    "description",
    "ingredients",
    "instructions",
    "meal_type",
    "prep_time",
    "servings",
    "is_saved",
)

# Largest id SQLite can store; anything bigger cannot exist.
MAX_ROW_ID = 2**63 - 1

SAMPLE_RECIPES = [
    {
        "title": "Mediterranean Bowl",
        "description": "Quinoa, chickpeas, cucumber, tomatoes with lemon-tahini dressing",
        "ingredients": "1 cup quinoa\n1 can chickpeas\n1 cucumber\n2 tomatoes\nlemon-tahini dressing",
        "instructions": (
            "Cook quinoa according to package instructions.\n"
            "Drain and rinse chickpeas.\n"
            "Dice cucumber and tomatoes.\n"
            "Mix everything and drizzle with lemon-tahini dressing."
        ),
        "meal_type": "Dinner",
        "prep_time": 35,
        "servings": 4,
        "is_saved": True,
    },
    {
        "title": "Berry Smoothie Bowl",
        "description": "Frozen berries, banana, yogurt topped with granola and fresh fruit",
        "ingredients": "1 cup frozen berries\n1 banana\n1/2 cup yogurt\n1/4 cup granola\nfresh fruit for topping",
        "instructions": (
            "Blend frozen berries, banana and yogurt until smooth.\n"
            "Pour into a bowl and top with granola and fresh fruit."
        ),
        "meal_type": "Breakfast",
        "prep_time": 10,
        "servings": 2,
        "is_saved": True,
    },
    {
        "title": "Garlic Herb Chicken",
        "description": "Pan-seared chicken with garlic, herbs, and roasted vegetables",
        "ingredients": "4 chicken breasts\n4 cloves garlic\nmixed herbs\nmixed vegetables\nolive oil, salt, pepper",
        "instructions": (
            "Season chicken with salt, pepper and herbs.\n"
            "Cook in hot olive oil until golden.\n"
            "Add minced garlic and cook for another minute.\n"
            "Serve with roasted vegetables."
        ),
        "meal_type": "Dinner",
        "prep_time": 45,
        "servings": 4,
        "is_saved": True,
    },
]


def _storable_id(value: int) -> bool:
    return 0 < value <= MAX_ROW_ID


class RecipeStore:
    """CRUD over recipes with optional per-owner filtering.

    Writes are serialised with a lock so the store stays consistent under a
    threaded server; reads go straight to the session.
    """

    def __init__(self) -> None:
        self._write_lock = threading.RLock()

    def create(self, fields: Mapping[str, Any]) -> Recipe:
        values = {key: fields[key] for key in WRITABLE_FIELDS if key in fields}
        values.setdefault("is_saved", False)
        with self._write_lock:
            recipe = Recipe(**values)
            db.session.add(recipe)
            db.session.commit()
        logger.debug("Created recipe %s (%s)", recipe.id, recipe.title)
        return recipe

    def list(self, owner_id: Optional[int] = None) -> List[Recipe]:
        if owner_id is not None and not _storable_id(owner_id):
            return []
        query = Recipe.query
        if owner_id is not None:
            query = query.filter_by(user_id=owner_id)
        return query.order_by(Recipe.id.asc()).all()

    def list_saved(self, owner_id: int) -> List[Recipe]:
        if not _storable_id(owner_id):
            return []
        return (
            Recipe.query.filter_by(user_id=owner_id, is_saved=True)
            .order_by(Recipe.id.asc())
            .all()
        )

    def get_by_id(self, recipe_id: int) -> Optional[Recipe]:
        if not _storable_id(recipe_id):
            return None
        return db.session.get(Recipe, recipe_id)

    def update(self, recipe_id: int, fields: Mapping[str, Any]) -> Optional[Recipe]:
        """Merge ``fields`` into the recipe; returns None when it does not exist."""
        with self._write_lock:
            recipe = self.get_by_id(recipe_id)
            if recipe is None:
                return None
            for key in WRITABLE_FIELDS:
                if key in fields:
                    setattr(recipe, key, fields[key])
            db.session.commit()
        return recipe

    def set_saved(self, recipe_id: int, saved: bool) -> Optional[Recipe]:
        return self.update(recipe_id, {"is_saved": saved})

    def delete(self, recipe_id: int) -> bool:
        with self._write_lock:
            recipe = self.get_by_id(recipe_id)
            if recipe is None:
                return False
            db.session.delete(recipe)
            db.session.commit()
        return True

    def seed_samples(self) -> int:
        """Insert the demo recipes when the table is empty."""
        if Recipe.query.first() is not None:
            return 0
        for sample in SAMPLE_RECIPES:
            self.create(sample)
        logger.info("Seeded %d sample recipes", len(SAMPLE_RECIPES))
        return len(SAMPLE_RECIPES)


def get_recipe_store() -> RecipeStore:
    store = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        store = RecipeStore()
        current_app.extensions[EXTENSION_KEY] = store
    return store
