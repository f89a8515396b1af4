"""
Pytest configuration and shared fixtures.

Every test gets a fresh app on an in-memory database, a stub Gemini client
that records prompts, and an email notifier whose HTTP calls land in an
in-memory outbox instead of the Resend API.
"""
import json

import httpx
import pytest

from app import create_app
from config import TestingConfig
from extensions import db, limiter
from services import email_service, gemini_service

OAT_BOWL_JSON = (
    '{"title":"Oat Bowl","description":"...","ingredients":"oats, milk",'
    '"instructions":"mix. heat.","mealType":"Breakfast","prepTime":"10 minutes","servings":2}'
)


class StubGeminiClient:
    """Stands in for GeminiClient; the last queued response repeats."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [OAT_BOWL_JSON])
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class MailOutbox:
    """httpx MockTransport handler capturing Resend API calls."""

    def __init__(self):
        self.sent = []
        self.requests = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"message": "rejected"})
        self.sent.append(json.loads(request.content))
        return httpx.Response(200, json={"id": f"email_{len(self.sent)}"})


def make_notifier(outbox, **kwargs):
    options = {
        "api_key": "re_test_key",
        "sender": "CuisineMuse <onboarding@resend.dev>",
        "http_client": httpx.Client(transport=httpx.MockTransport(outbox)),
    }
    options.update(kwargs)
    return email_service.EmailNotifier(**options)


@pytest.fixture
def gemini():
    return StubGeminiClient()


@pytest.fixture
def stub_gemini():
    """Factory for standalone stub clients."""
    return StubGeminiClient


@pytest.fixture
def outbox():
    return MailOutbox()


@pytest.fixture
def notifier_factory(outbox):
    """Notifiers wired to the shared outbox, with overridable settings."""
    return lambda **kwargs: make_notifier(outbox, **kwargs)


@pytest.fixture
def app_factory(gemini, outbox):
    """Build apps from a config class with the stubs installed."""
    created = []

    def _make(config_object=TestingConfig):
        application = create_app(config_object)
        application.extensions[gemini_service.EXTENSION_KEY] = gemini
        application.extensions[email_service.EXTENSION_KEY] = make_notifier(outbox)
        with application.app_context():
            limiter.reset()
        created.append(application)
        return application

    yield _make

    for application in created:
        with application.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture
def app(app_factory):
    application = app_factory()
    with application.app_context():
        yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def recipe_payload():
    return {
        "title": "Lemon Pasta",
        "description": "Bright weeknight pasta",
        "ingredients": "200g spaghetti\n1 lemon\nparmesan",
        "instructions": "Boil pasta.\nToss with lemon and cheese.",
        "mealType": "Dinner",
        "prepTime": 20,
        "servings": 2,
    }
