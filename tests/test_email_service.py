import httpx

from services.email_service import (
    NEWSLETTER_SUBJECT,
    WELCOME_SUBJECT,
    EmailNotifier,
    split_lines,
)


def test_send_posts_to_resend_with_bearer_auth(app, outbox, notifier_factory):
    notifier = notifier_factory()
    assert notifier.send("cook@kitchenmail.com", "Hello", "<p>Hi</p>") is True

    request = outbox.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.resend.com/emails"
    assert request.headers["Authorization"] == "Bearer re_test_key"
    assert outbox.sent[0] == {
        "from": "CuisineMuse <onboarding@resend.dev>",
        "to": ["cook@kitchenmail.com"],
        "subject": "Hello",
        "html": "<p>Hi</p>",
    }


def test_missing_api_key_skips_the_request(app, outbox, notifier_factory):
    notifier = notifier_factory(api_key=None)
    assert notifier.send("cook@kitchenmail.com", "Hello", "<p>Hi</p>") is False
    assert outbox.requests == []


def test_provider_rejection_reports_failure(app, outbox, notifier_factory):
    outbox.status_code = 422
    assert notifier_factory().send("cook@kitchenmail.com", "Hello", "<p>Hi</p>") is False


def test_transport_error_reports_failure(app):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    notifier = EmailNotifier(
        api_key="re_test_key",
        sender="CuisineMuse <onboarding@resend.dev>",
        http_client=httpx.Client(transport=httpx.MockTransport(refuse)),
    )
    assert notifier.send("cook@kitchenmail.com", "Hello", "<p>Hi</p>") is False


def test_sandbox_mode_redirects_every_recipient(app, outbox, notifier_factory):
    notifier = notifier_factory(sandbox_mode=True)
    notifier.send("cook@kitchenmail.com", "Hello", "<p>Hi</p>")
    assert outbox.sent[0]["to"] == ["delivered@resend.dev"]


def test_placeholder_domain_is_redirected(app, outbox, notifier_factory):
    notifier = notifier_factory()
    assert notifier.resolve_recipient("someone@EXAMPLE.com") == "delivered@resend.dev"
    assert notifier.resolve_recipient("cook@kitchenmail.com") == "cook@kitchenmail.com"


def test_welcome_mails_render_templates(app, outbox, notifier_factory):
    notifier = notifier_factory()
    assert notifier.send_welcome("cook@kitchenmail.com", name="Amelie") is True
    assert notifier.send_newsletter_welcome("cook@kitchenmail.com") is True

    welcome, newsletter = outbox.sent
    assert welcome["subject"] == WELCOME_SUBJECT
    assert "Amelie" in welcome["html"]
    assert newsletter["subject"] == NEWSLETTER_SUBJECT


def test_recipe_mail_lists_ingredients_and_steps(app, outbox, notifier_factory):
    recipe = {
        "title": "Lemon Pasta",
        "description": "Bright weeknight pasta",
        "ingredients": "200g spaghetti\n\n 1 lemon \nparmesan",
        "instructions": "Boil pasta.\nToss with lemon and cheese.",
        "mealType": "Dinner",
        "prepTime": 20,
        "servings": 2,
    }
    assert notifier_factory().send_recipe("cook@kitchenmail.com", recipe) is True

    mail = outbox.sent[0]
    assert mail["subject"] == "Your Recipe: Lemon Pasta 🍳"
    html = mail["html"]
    assert html.count("<li>") == 5
    assert "<li>1 lemon</li>" in html
    assert "20 minutes" in html
    assert "Serves 2" in html
    assert "Recipe generated by CuisineMuse AI" in html


def test_recipe_mail_omits_empty_sections(app, outbox, notifier_factory):
    notifier_factory().send_recipe("cook@kitchenmail.com", {"title": "Mystery Dish"})
    html = outbox.sent[0]["html"]
    assert "Ingredients" not in html
    assert "Instructions" not in html
    assert 'class="prep-time"' not in html


def test_recipe_mail_escapes_markup(app, outbox, notifier_factory):
    notifier_factory().send_recipe(
        "cook@kitchenmail.com",
        {"title": "<script>alert(1)</script>", "ingredients": "salt & pepper"},
    )
    html = outbox.sent[0]["html"]
    assert "<script>" not in html
    assert "salt &amp; pepper" in html


def test_split_lines():
    assert split_lines(None) == []
    assert split_lines("a\n\n b \n") == ["a", "b"]
