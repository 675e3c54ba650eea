from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest

from processed_or_not.api.dependencies import get_adapter_registry
from processed_or_not.domain.models import DataSource
from processed_or_not.domain.ports import ProductSourcePort
from processed_or_not.main import app


def make_adapter(name: str, source: DataSource) -> AsyncMock:
    adapter = AsyncMock(spec=ProductSourcePort)
    adapter.name = name
    adapter.source = source
    adapter.lookup = AsyncMock()
    return adapter


@pytest.fixture
def mock_adapter_registry(client: object) -> Generator[dict[DataSource, AsyncMock], None, None]:
    # Keine echten HTTP-Calls: OFF und USDA als Mocks, übrige Quellen nicht registriert
    registry = {
        DataSource.OPEN_FOOD_FACTS: make_adapter("OpenFoodFacts", DataSource.OPEN_FOOD_FACTS),
        DataSource.USDA_FOODDATA: make_adapter(
            "USDA FoodData Central", DataSource.USDA_FOODDATA
        ),
    }
    app.dependency_overrides[get_adapter_registry] = lambda: registry
    yield registry
    app.dependency_overrides.pop(get_adapter_registry, None)
