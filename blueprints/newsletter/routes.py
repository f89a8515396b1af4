import logging

from flask import Blueprint, jsonify

from schemas import NewsletterRequest, parse_body
from services.email_service import get_notifier
from services.newsletter_service import subscribe

logger = logging.getLogger(__name__)

newsletter_bp = Blueprint("newsletter", __name__)

EMAIL_WARNING = "Subscription saved but welcome email could not be sent"


@newsletter_bp.route("/newsletter", methods=["POST"])
def subscribe_newsletter():
    data = parse_body(NewsletterRequest, "Invalid email")
    subscription, created = subscribe(data.email)
    body = subscription.to_dict()

    if created and not get_notifier().send_newsletter_welcome(subscription.email):
        # The subscription stands even when the welcome mail fails.
        logger.warning("Newsletter welcome email failed for %s", subscription.email)
        body["warning"] = EMAIL_WARNING

    return jsonify(body), 201
