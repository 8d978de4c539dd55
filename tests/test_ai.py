"""Pruebas de sugerencias de datos de evento con IA"""
import json

import pytest

from main import app
from services.ai.routes.ai import get_ai_service
from services.ai.services.ai_service import AIGenerationError, AIService


class ScriptedAIService(AIService):
    """Devuelve una respuesta fija en lugar de llamar a OpenAI"""

    def __init__(self, output: str):
        super().__init__(client=object())
        self.output = output
        self.prompts = []

    async def _request_completion(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.output.strip()


@pytest.fixture
def use_ai_output():
    services = []

    def _use(output):
        service = ScriptedAIService(output)
        services.append(service)
        app.dependency_overrides[get_ai_service] = lambda: service
        return service

    yield _use
    app.dependency_overrides.pop(get_ai_service, None)


async def test_title_is_required(client, use_ai_output):
    use_ai_output("{}")

    response = await client.post("/api/generate-event-data", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Title is required"}


async def test_generated_data_resolves_names(client, factory, use_ai_output):
    category = await factory.category("Music")
    venue = await factory.venue("org-1", title="Blue Hall")
    service = use_ai_output(json.dumps({
        "description": "An evening of smooth jazz.",
        "categoryId": category.id,
        "venueId": venue.id,
        "ticketsCount": 300,
    }))

    response = await client.post("/api/generate-event-data", json={"title": "Jazz Evening"})

    assert response.status_code == 200
    assert response.json() == {
        "description": "An evening of smooth jazz.",
        "category": "Music",
        "venue": "Blue Hall",
        "categoryId": category.id,
        "venueId": venue.id,
        "ticketsCount": 300,
    }
    assert 'Event title: "Jazz Evening"' in service.prompts[0]
    assert category.id in service.prompts[0]
    assert "Blue Hall" in service.prompts[0]


async def test_unknown_ids_resolve_to_empty_names(client, use_ai_output):
    use_ai_output(json.dumps({
        "description": "Something fun.",
        "categoryId": "cat-x",
        "venueId": "venue-x",
        "ticketsCount": 60,
    }))

    response = await client.post("/api/generate-event-data", json={"title": "Fun"})

    assert response.status_code == 200
    assert response.json()["category"] == ""
    assert response.json()["venue"] == ""


async def test_empty_output_is_an_error(client, use_ai_output):
    use_ai_output("   ")

    response = await client.post("/api/generate-event-data", json={"title": "Fun"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI returned empty description"}


async def test_invalid_json_is_an_error(client, use_ai_output):
    use_ai_output("```json\n{\"description\": \"x\"}\n```")

    response = await client.post("/api/generate-event-data", json={"title": "Fun"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse AI JSON response"}


async def test_small_tickets_count_is_discarded(client, use_ai_output):
    use_ai_output(json.dumps({
        "description": "Tiny gig.",
        "categoryId": "c",
        "venueId": "v",
        "ticketsCount": 20,
    }))

    response = await client.post("/api/generate-event-data", json={"title": "Gig"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI response missing required fields"}


@pytest.mark.parametrize("payload", [
    {"description": "x", "categoryId": "c", "venueId": "v", "ticketsCount": True},
    {"description": "x", "categoryId": "c", "venueId": "v", "ticketsCount": "500"},
    {"description": "", "categoryId": "c", "venueId": "v", "ticketsCount": 100},
    {"description": "x", "categoryId": 12, "venueId": "v", "ticketsCount": 100},
    {"description": "x", "categoryId": "c", "ticketsCount": 100},
    ["not", "an", "object"],
])
def test_parse_completion_rejects_incomplete_payloads(payload):
    with pytest.raises(AIGenerationError, match="AI response missing required fields"):
        AIService.parse_completion(json.dumps(payload))


def test_parse_completion_accepts_valid_payload():
    data = AIService.parse_completion(
        '{"description": "Great", "categoryId": "c", "venueId": "v", "ticketsCount": 50}'
    )

    assert data == {"description": "Great", "category_id": "c", "venue_id": "v", "tickets_count": 50}
