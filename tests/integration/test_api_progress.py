from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.domain.ports import ProductNotFoundError


def test_poll_unknown_key_returns_404(client: TestClient) -> None:
    response = client.get("/api/v1/progress/8720600618161")
    assert response.status_code == 404


def test_poll_after_exhausted_lookup(
    client: TestClient, alice_headers: dict, mock_adapter_registry: dict
) -> None:
    for adapter in mock_adapter_registry.values():
        adapter.lookup.side_effect = ProductNotFoundError("0000000000000", adapter.source)

    client.get("/api/v1/products/0000000000000", headers=alice_headers)

    response = client.get("/api/v1/progress/0000000000000")
    assert response.status_code == 200
    data = response.json()
    assert data["key"] == "0000000000000"
    assert data["currentSource"] == ""
    assert data["completedSources"] == ["OpenFoodFacts", "USDA FoodData Central"]
    assert data["totalSources"] == 2
    assert data["found"] is False
    assert data["isComplete"] is True
    assert data["error"] is None


def test_websocket_subscribers_receive_same_ordered_events(
    client: TestClient,
    alice_headers: dict,
    mock_adapter_registry: dict,
    hak_product: NormalizedProduct,
) -> None:
    off: AsyncMock = mock_adapter_registry[DataSource.OPEN_FOOD_FACTS]
    usda: AsyncMock = mock_adapter_registry[DataSource.USDA_FOODDATA]
    off.lookup.side_effect = ProductNotFoundError("8720600618161", "open_food_facts")
    usda.lookup.return_value = hak_product

    with client.websocket_connect("/api/v1/progress/8720600618161/ws") as first, \
            client.websocket_connect("/api/v1/progress/8720600618161/ws") as second:
        response = client.get("/api/v1/products/8720600618161", headers=alice_headers)
        assert response.status_code == 200

        received = []
        for ws in (first, second):
            messages = []
            while True:
                message = ws.receive_json()
                messages.append(message)
                if message["type"] != "progress":
                    break
            received.append(messages)

    assert received[0] == received[1]
    final = received[0][-1]
    assert final["type"] == "complete"
    assert final["found"] is True
    assert final["completedSources"] == ["OpenFoodFacts", "USDA FoodData Central"]
    # completedSources wächst nur
    lengths = [len(m["completedSources"]) for m in received[0]]
    assert lengths == sorted(lengths)
    current = [m["currentSource"] for m in received[0] if m["currentSource"]]
    assert current[0] == "OpenFoodFacts"
    assert current[-1] == "USDA FoodData Central"


def test_websocket_sends_snapshot_of_finished_lookup(
    client: TestClient,
    alice_headers: dict,
    mock_adapter_registry: dict,
    hak_product: NormalizedProduct,
) -> None:
    mock_adapter_registry[DataSource.OPEN_FOOD_FACTS].lookup.return_value = hak_product
    client.get("/api/v1/products/8720600618161", headers=alice_headers)

    with client.websocket_connect("/api/v1/progress/8720600618161/ws") as ws:
        message = ws.receive_json()

    assert message["type"] == "complete"
    assert message["key"] == "8720600618161"
    assert message["isComplete"] is True
    assert message["found"] is True


def test_websocket_on_finished_key_follows_the_next_search(
    client: TestClient,
    alice_headers: dict,
    mock_adapter_registry: dict,
    hak_product: NormalizedProduct,
) -> None:
    mock_adapter_registry[DataSource.OPEN_FOOD_FACTS].lookup.return_value = hak_product
    client.get("/api/v1/products/8720600618161", headers=alice_headers)

    with client.websocket_connect("/api/v1/progress/8720600618161/ws") as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "complete"

        response = client.get("/api/v1/products/8720600618161", headers=alice_headers)
        assert response.status_code == 200

        messages = []
        while True:
            message = ws.receive_json()
            messages.append(message)
            if message["type"] != "progress":
                break

    assert all(m["runId"] > snapshot["runId"] for m in messages)
    assert messages[0]["isComplete"] is False
    assert messages[-1]["type"] == "complete"
    assert messages[-1]["found"] is True
