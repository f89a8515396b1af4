import threading

import pytest

from services.chat_service import (
    ChatOrchestrator,
    GenerationCounter,
    get_counter,
    get_orchestrator,
    recipe_envelope,
)
from services.errors import InvalidConversationState, MalformedRecipeJSON, ProviderUnavailable
from services.gemini_service import GeminiClient
from services.prompt_builder import ChatMessage, GenerationOptions


@pytest.fixture
def make_orchestrator(stub_gemini):
    def _make(*responses, error=None):
        client = stub_gemini(responses=list(responses) or None, error=error)
        return ChatOrchestrator(client, GenerationCounter()), client

    return _make


def test_chat_turn_returns_reply_and_envelope(make_orchestrator):
    orchestrator, client = make_orchestrator(
        'Bon appétit!\n{"title": "Ratatouille", "prepTime": 50, "servings": 4}'
    )
    reply = orchestrator.chat([ChatMessage(role="user", content="Vegetables please")])

    assert reply.message.role == "assistant"
    assert reply.message.content == "Bon appétit!"
    assert reply.recipe == {
        "title": "Ratatouille",
        "time": "50 minutes",
        "servings": "4 servings",
        "recipeData": reply.draft.to_dict(),
    }
    body = reply.to_dict()
    assert body["message"]["recipe"] == body["recipe"]
    assert "User: Vegetables please" in client.prompts[0]
    assert orchestrator.counter.value == 1


def test_chat_meal_type_falls_back_to_facet(make_orchestrator):
    orchestrator, _ = make_orchestrator('{"title": "Pancakes"}')
    reply = orchestrator.chat(
        [ChatMessage(role="user", content="Sweet")],
        GenerationOptions(meal_type="Breakfast"),
    )
    assert reply.draft.meal_type == "Breakfast"


def test_invalid_history_never_reaches_the_provider(make_orchestrator):
    orchestrator, client = make_orchestrator()
    with pytest.raises(InvalidConversationState):
        orchestrator.chat([ChatMessage(role="assistant", content="Hi")])
    assert client.prompts == []
    assert orchestrator.counter.value == 0


def test_provider_failure_propagates_without_counting(make_orchestrator):
    orchestrator, _ = make_orchestrator(error=ProviderUnavailable("quota exceeded"))
    with pytest.raises(ProviderUnavailable):
        orchestrator.chat([ChatMessage(role="user", content="Anything")])
    assert orchestrator.counter.value == 0


def test_malformed_completion_propagates(make_orchestrator):
    orchestrator, _ = make_orchestrator("Sorry, I only speak in riddles today.")
    with pytest.raises(MalformedRecipeJSON):
        orchestrator.generate_recipe(GenerationOptions(prompt="dinner"))


def test_direct_generation_uses_placeholders_for_missing_fields(make_orchestrator):
    orchestrator, client = make_orchestrator('{"prepTime": "15 min"}')
    draft = orchestrator.generate_recipe(GenerationOptions(prompt="snack"))

    assert draft.title == "Untitled Recipe"
    assert draft.description == "No description provided"
    assert draft.ingredients == "No ingredients provided"
    assert draft.instructions == "No instructions provided"
    assert draft.meal_type == "Any meal"
    assert draft.prep_time == 15
    assert draft.servings == 4
    assert 'The user\'s specific request is: "snack"' in client.prompts[0]


def test_balanced_orchestrator_tolerates_trailing_braces(stub_gemini):
    client = stub_gemini(['{"title": "Tart"} {garnish}'])
    orchestrator = ChatOrchestrator(client, GenerationCounter(), balanced_braces=True)
    assert orchestrator.generate_recipe(GenerationOptions(prompt="dessert")).title == "Tart"


def test_recipe_envelope_formats_time_and_servings(make_orchestrator):
    orchestrator, _ = make_orchestrator('{"title": "Stew", "prepTime": 90, "servings": 8}')
    draft = orchestrator.generate_recipe(GenerationOptions(prompt="stew"))
    envelope = recipe_envelope(draft)
    assert envelope["time"] == "90 minutes"
    assert envelope["servings"] == "8 servings"


def test_counter_is_safe_under_threads():
    counter = GenerationCounter()

    def bump():
        for _ in range(200):
            counter.increment()

    threads = [threading.Thread(target=bump) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert counter.value == 1000


def test_get_orchestrator_reads_app_state(app, gemini):
    orchestrator = get_orchestrator()
    assert orchestrator.client is gemini
    assert orchestrator.counter is get_counter()
    assert orchestrator.balanced_braces is False


def test_gemini_client_without_key_is_unavailable():
    client = GeminiClient(api_key=None)
    with pytest.raises(ProviderUnavailable):
        client.generate("hello")


class _FakeResponse:
    def __init__(self, text):
        self.text = text


class _FakeModel:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def generate_content(self, prompt, generation_config=None):
        self.calls.append((prompt, generation_config))
        if isinstance(self.result, Exception):
            raise self.result
        return _FakeResponse(self.result)


def test_gemini_client_passes_generation_config():
    client = GeminiClient(api_key="key", temperature=0.2, max_output_tokens=256)
    model = _FakeModel('{"title": "Soup"}')
    client._model = model

    assert client.generate("make soup") == '{"title": "Soup"}'
    assert model.calls == [("make soup", {"temperature": 0.2, "max_output_tokens": 256})]


@pytest.mark.parametrize("result", [RuntimeError("503 backend"), "   "])
def test_gemini_client_failures_become_provider_unavailable(result):
    client = GeminiClient(api_key="key")
    client._model = _FakeModel(result)
    with pytest.raises(ProviderUnavailable):
        client.generate("make soup")
