from flask import Blueprint, jsonify

from schemas import EmailRecipeRequest, WelcomeEmailRequest, parse_body
from services.email_service import get_notifier
from services.errors import EmailDeliveryFailed

email_bp = Blueprint("email", __name__)


@email_bp.route("/email/recipe", methods=["POST"])
def email_recipe():
    data = parse_body(EmailRecipeRequest, "Invalid email data")
    recipe = data.recipe.model_dump(by_alias=True)
    if not get_notifier().send_recipe(data.recipient_email, recipe):
        raise EmailDeliveryFailed(f"Recipe email to {data.recipient_email} failed")
    return jsonify({"message": "Email sent successfully"})


@email_bp.route("/email/test", methods=["POST"])
def email_test():
    data = parse_body(WelcomeEmailRequest, "Invalid email")
    if not get_notifier().send_welcome(data.email):
        raise EmailDeliveryFailed(f"Test email to {data.email} failed")
    return jsonify({"message": "Test email sent successfully"})
