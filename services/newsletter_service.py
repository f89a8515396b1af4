import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError

from extensions import db  # type: ignore
from models.newsletter_model import NewsletterSubscription

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def subscribe(email: str) -> Tuple[NewsletterSubscription, bool]:
    """
    Store a subscription for ``email``.

    Returns ``(subscription, created)``. A repeat subscribe returns the stored
    row untouched with ``created=False``.
    """
    address = normalize_email(email)
    existing = NewsletterSubscription.get_by_email(address)
    if existing is not None:
        logger.info("Newsletter address already subscribed: %s", address)
        return existing, False

    subscription = NewsletterSubscription(email=address)
    db.session.add(subscription)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent subscribe for the same address.
        db.session.rollback()
        existing = NewsletterSubscription.get_by_email(address)
        if existing is None:
            raise
        return existing, False

    logger.info("New newsletter subscription %s for %s", subscription.id, address)
    return subscription, True
