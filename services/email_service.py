import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from flask import current_app, render_template

logger = logging.getLogger(__name__)

EXTENSION_KEY = "email_notifier"

WELCOME_SUBJECT = "Welcome to CuisineMuse – Let's get cooking 🍳"
NEWSLETTER_SUBJECT = "Welcome to the Flavor Feed 🥘"


def split_lines(text: Optional[str]) -> List[str]:
    """Newline-delimited text as a list of non-empty, trimmed lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


class EmailNotifier:
    """
    Send templated transactional mail through the Resend HTTP API.

    Every send reports success as a boolean; failures are logged, never raised,
    so callers decide whether a failed mail should block their own operation.
    """

    def __init__(
        self,
        api_key: Optional[str],
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        sandbox_mode: bool = False,
        sandbox_recipient: str = "delivered@resend.dev",
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.sandbox_mode = sandbox_mode
        self.sandbox_recipient = sandbox_recipient
        self.http_client = http_client or httpx.Client(timeout=timeout)

    def resolve_recipient(self, email: str) -> str:
        """Route sandbox and placeholder addresses to the provider's test inbox."""
        if self.sandbox_mode or email.lower().endswith("@example.com"):
            logger.debug("Redirecting mail for %s to sandbox recipient", email)
            return self.sandbox_recipient
        return email

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.api_key:
            logger.error("RESEND_API_KEY is not configured; email to %s not sent.", to)
            return False

        recipient = self.resolve_recipient(to)
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        try:
            response = self.http_client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.exception("Email transport failed for %s: %s", recipient, exc)
            return False

        if response.is_error:
            logger.error(
                "Email provider rejected mail to %s: %s %s",
                recipient,
                response.status_code,
                response.text,
            )
            return False

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        logger.info("Email '%s' sent to %s (id=%s)", subject, recipient, message_id)
        return True

    def send_welcome(self, email: str, name: Optional[str] = None) -> bool:
        html = render_template("email/welcome.html", name=name)
        return self.send(email, WELCOME_SUBJECT, html)

    def send_newsletter_welcome(self, email: str) -> bool:
        html = render_template("email/newsletter_welcome.html")
        return self.send(email, NEWSLETTER_SUBJECT, html)

    def send_recipe(self, email: str, recipe: Mapping[str, Any]) -> bool:
        html = render_template(
            "email/recipe_export.html",
            recipe=recipe,
            ingredients=split_lines(recipe.get("ingredients")),
            instructions=split_lines(recipe.get("instructions")),
        )
        return self.send(email, f"Your Recipe: {recipe.get('title')} 🍳", html)


def _build_notifier_from_config() -> EmailNotifier:
    config = current_app.config
    return EmailNotifier(
        api_key=config.get("RESEND_API_KEY"),
        sender=config.get("EMAIL_SENDER", "CuisineMuse <onboarding@resend.dev>"),
        api_url=config.get("RESEND_API_URL", "https://api.resend.com/emails"),
        sandbox_mode=config.get("EMAIL_SANDBOX_MODE", False),
        sandbox_recipient=config.get("EMAIL_SANDBOX_RECIPIENT", "delivered@resend.dev"),
        timeout=config.get("EMAIL_TIMEOUT", 10.0),
    )


def get_notifier() -> EmailNotifier:
    notifier = current_app.extensions.get(EXTENSION_KEY)
    if notifier is None:
        notifier = _build_notifier_from_config()
        current_app.extensions[EXTENSION_KEY] = notifier
    return notifier
