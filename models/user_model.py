from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db  # type: ignore
from models import TimestampMixin


class User(TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False, unique=True, index=True)
    email = db.Column(db.String(254), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    recipes = db.relationship("Recipe", back_populates="owner", lazy="dynamic")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def get_by_username(username: str) -> Optional["User"]:
        return User.query.filter_by(username=username).first()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username, "email": self.email}
