import logging
from datetime import datetime

from flask import Blueprint, jsonify, session

from extensions import db  # type: ignore
from models.user_model import User
from schemas import LoginRequest, RegisterRequest, parse_body
from services.email_service import get_notifier
from services.errors import CuisineMuseError, ValidationError
from services.rate_limits import auth_limit

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


class InvalidCredentials(CuisineMuseError):
    status_code = 401
    code = "invalid_credentials"
    public_message = "Invalid username or password."


def _login_user(user: User) -> None:
    session["user_id"] = user.id
    session["username"] = user.username
    session.permanent = True


@auth_bp.route("/auth/register", methods=["POST"])
@auth_limit
def register():
    data = parse_body(RegisterRequest, "All fields are required.")

    if User.get_by_username(data.username) is not None:
        raise ValidationError(
            "An account with this username already exists.",
            details=[{"field": "username", "message": "already taken"}],
        )

    user = User(username=data.username, email=data.email)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()
    _login_user(user)
    logger.info("Registered user %s (%s)", user.id, user.username)

    body = user.to_dict()
    if user.email and not get_notifier().send_welcome(user.email, name=user.username):
        logger.warning("Welcome email failed for user %s", user.id)
        body["warning"] = "Account created but welcome email could not be sent"
    return jsonify(body), 201


@auth_bp.route("/auth/login", methods=["POST"])
@auth_limit
def login():
    data = parse_body(LoginRequest, "Username and password are required.")

    user = User.get_by_username(data.username)
    if not user or not user.check_password(data.password):
        logger.info("Failed login for %s", data.username)
        raise InvalidCredentials()

    _login_user(user)
    user.last_login_at = datetime.utcnow()
    db.session.commit()
    return jsonify(user.to_dict())


@auth_bp.route("/auth/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"message": "You have been logged out."})
