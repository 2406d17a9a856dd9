"""Tests for AI model and activation rule management endpoints."""

import pytest
from httpx import AsyncClient

from model_gateway.adapters.providers import MockAdapter


async def create_model(client: AsyncClient, data: dict) -> dict:
    response = await client.post("/api/ai-models", json=data)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_model(client: AsyncClient, sample_model_data):
    """Test creating the first model makes it the default."""
    response = await client.post("/api/ai-models", json=sample_model_data)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["name"] == sample_model_data["name"]
    assert data["provider"] == "openai"
    assert data["is_default"] is True
    assert data["has_api_key"] is True
    assert "api_key" not in data


@pytest.mark.asyncio
async def test_create_model_unknown_provider(client: AsyncClient, sample_model_data):
    """Test an unknown provider is refused."""
    response = await client.post("/api/ai-models", json={**sample_model_data, "provider": "llama"})

    assert response.status_code == 422
    assert response.json()["detail"]["error"]["code"] == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_create_model_threshold_out_of_range(client: AsyncClient, sample_model_data):
    """Test a confidence threshold above 1 fails request validation."""
    response = await client.post(
        "/api/ai-models", json={**sample_model_data, "confidence_threshold": 1.2}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_and_get_models(client: AsyncClient, sample_model_data):
    """Test listing and getting models."""
    created = await create_model(client, sample_model_data)

    response = await client.get("/api/ai-models")
    assert response.status_code == 200
    assert [m["id"] for m in response.json()["data"]] == [created["id"]]

    response = await client.get(f"/api/ai-models/{created['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["settings"]["model_name"] == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_get_model_not_found(client: AsyncClient):
    """Test getting a non-existent model."""
    response = await client.get("/api/ai-models/999")

    assert response.status_code == 404
    assert response.json()["detail"]["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_model_and_fallback_cycle(client: AsyncClient, sample_model_data):
    """Test fallback updates and cycle rejection."""
    first = await create_model(client, sample_model_data)
    second = await create_model(
        client, {**sample_model_data, "name": "Claude", "provider": "anthropic", "settings": {}}
    )

    response = await client.put(
        f"/api/ai-models/{first['id']}", json={"fallback_model_id": second["id"]}
    )
    assert response.status_code == 200
    assert response.json()["data"]["fallback_model_id"] == second["id"]

    response = await client.put(
        f"/api/ai-models/{second['id']}", json={"fallback_model_id": first["id"]}
    )
    assert response.status_code == 422
    assert response.json()["detail"]["error"]["code"] == "FALLBACK_CYCLE"


@pytest.mark.asyncio
async def test_deactivate_default_model_conflict(client: AsyncClient, sample_model_data):
    """Test the default model cannot be deactivated."""
    created = await create_model(client, sample_model_data)

    response = await client.put(f"/api/ai-models/{created['id']}", json={"is_active": False})

    assert response.status_code == 409
    assert response.json()["detail"]["error"]["code"] == "DEFAULT_CONFLICT"


@pytest.mark.asyncio
async def test_set_default_and_delete(client: AsyncClient, sample_model_data):
    """Test moving the default, then deleting it promotes another active model."""
    first = await create_model(client, sample_model_data)
    second = await create_model(client, {**sample_model_data, "name": "Mistral", "provider": "mistral"})

    response = await client.post(f"/api/ai-models/{second['id']}/default")
    assert response.status_code == 200
    assert response.json()["data"]["is_default"] is True

    response = await client.delete(f"/api/ai-models/{second['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["default_model_id"] == first["id"]


@pytest.mark.asyncio
async def test_try_model_returns_reply_and_metadata(
    client: AsyncClient, use_providers, sample_model_data
):
    """Test calling one model directly returns its reply with call metadata."""
    model = await create_model(client, sample_model_data)
    mock = MockAdapter(confidence=0.9)
    use_providers(mock)

    response = await client.post(
        f"/api/ai-models/{model['id']}/test",
        json={"message": "Ping", "temperature": 0.5, "max_tokens": 32},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is True
    assert data["response"] == "This is a mock response to: 'Ping'"
    metadata = data["metadata"]
    assert metadata["provider"] == "openai"
    assert metadata["response_time"] >= 0
    assert metadata["tokens_input"] == 1
    assert metadata["tokens_output"] > 0
    assert metadata["confidence"] == 0.9
    assert "error" not in metadata
    assert mock.calls == [model["id"]]

    # Tries are not written to the usage log
    response = await client.get("/api/analytics/models")
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_try_model_failure_does_not_fall_back(
    client: AsyncClient, use_providers, sample_model_data
):
    """Test a failing model is reported without trying its fallback."""
    backup = await create_model(client, {**sample_model_data, "name": "Mistral", "provider": "mistral"})
    model = await create_model(
        client, {**sample_model_data, "name": "Primary", "fallback_model_id": backup["id"]}
    )
    mock = MockAdapter(failing_models={model["id"]})
    use_providers(mock)

    response = await client.post(f"/api/ai-models/{model['id']}/test")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is False
    assert data["response"] is None
    assert data["metadata"]["error_kind"] == "server"
    assert "Simulated failure" in data["metadata"]["error"]
    assert mock.calls == [model["id"]]


@pytest.mark.asyncio
async def test_try_model_errors(client: AsyncClient, sample_model_data):
    """Test unknown models and out-of-range overrides are refused."""
    model = await create_model(client, {**sample_model_data, "provider": "anthropic"})

    response = await client.post("/api/ai-models/999/test", json={"message": "Ping"})
    assert response.status_code == 404

    response = await client.post(
        f"/api/ai-models/{model['id']}/test", json={"message": "Ping", "temperature": 1.5}
    )
    assert response.status_code == 422
    assert response.json()["detail"]["error"]["code"] == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_rule_crud(client: AsyncClient, sample_model_data, sample_rule_data):
    """Test creating, updating, listing and deleting activation rules."""
    model = await create_model(client, sample_model_data)
    base = f"/api/ai-models/{model['id']}/rules"

    response = await client.post(base, json=sample_rule_data)
    assert response.status_code == 201
    rule = response.json()["data"]
    assert rule["ai_model_id"] == model["id"]
    assert rule["conditions"] == sample_rule_data["conditions"]

    response = await client.put(f"{base}/{rule['id']}", json={**sample_rule_data, "priority": 20})
    assert response.status_code == 200
    assert response.json()["data"]["priority"] == 20

    response = await client.get(base)
    assert [r["id"] for r in response.json()["data"]] == [rule["id"]]

    response = await client.delete(f"{base}/{rule['id']}")
    assert response.status_code == 200

    response = await client.delete(f"{base}/{rule['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rule_with_unknown_operator(client: AsyncClient, sample_model_data, sample_rule_data):
    """Test a malformed condition is refused."""
    model = await create_model(client, sample_model_data)
    data = {
        **sample_rule_data,
        "conditions": [{"field": "plan", "operator": "matches", "value": "pro"}],
    }

    response = await client.post(f"/api/ai-models/{model['id']}/rules", json=data)

    assert response.status_code == 422
    assert response.json()["detail"]["error"]["code"] == "INVALID_RULE_CONDITION"


@pytest.mark.asyncio
async def test_rule_priority_must_be_positive(client: AsyncClient, sample_model_data, sample_rule_data):
    """Test priority 0 fails request validation."""
    model = await create_model(client, sample_model_data)

    response = await client.post(
        f"/api/ai-models/{model['id']}/rules", json={**sample_rule_data, "priority": 0}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_validation_endpoint(client: AsyncClient, sample_model_data):
    """Test the configuration check of a consistent setup."""
    await create_model(client, sample_model_data)

    response = await client.get("/api/ai-models/validation")

    assert response.status_code == 200
    assert response.json()["data"] == []
