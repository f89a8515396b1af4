from typing import Any, Dict, Optional

from extensions import db  # type: ignore
from models import TimestampMixin


class NewsletterSubscription(TimestampMixin, db.Model):
    """One row per subscribed address; the email column is unique."""

    __tablename__ = "newsletters"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), nullable=False, unique=True, index=True)

    @staticmethod
    def get_by_email(email: str) -> Optional["NewsletterSubscription"]:
        return NewsletterSubscription.query.filter_by(email=email).first()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
