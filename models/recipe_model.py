from typing import Any, Dict

from extensions import db  # type: ignore
from models import TimestampMixin


class Recipe(TimestampMixin, db.Model):
    """A persisted recipe, either user-authored or a saved AI suggestion."""

    __tablename__ = "recipes"
    # AUTOINCREMENT keeps ids monotonic even after the newest row is deleted.
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    ingredients = db.Column(db.Text, nullable=False, default="")
    instructions = db.Column(db.Text, nullable=False, default="")
    meal_type = db.Column(db.String(64), nullable=False, default="")
    prep_time = db.Column(db.Integer, nullable=False)
    servings = db.Column(db.Integer, nullable=False)
    is_saved = db.Column(db.Boolean, nullable=False, default=False)

    owner = db.relationship("User", back_populates="recipes")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "description": self.description,
            "ingredients": self.ingredients,
            "instructions": self.instructions,
            "mealType": self.meal_type,
            "prepTime": self.prep_time,
            "servings": self.servings,
            "isSaved": bool(self.is_saved),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
