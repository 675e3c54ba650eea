# tests/conftest.py
from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import processed_or_not.api.dependencies as _deps
from processed_or_not.core.config import Settings, get_settings
from processed_or_not.core.security import limiter
from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.main import app


def _reset_singletons() -> None:
    _deps._product_repository = None
    _deps._history_repository = None
    _deps.get_progress_store.cache_clear()
    _deps.get_progress_broadcaster.cache_clear()
    limiter.reset()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        api_keys={"test-key-alice": "tenant_alice", "test-key-bob": "tenant_bob"},
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    # Jeder Test startet mit leerer In-Memory-DB und frischem Progress Store
    _reset_singletons()
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        with patch(
            "processed_or_not.core.config.get_settings", return_value=test_settings
        ), TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
        _reset_singletons()


@pytest.fixture
def alice_headers() -> dict:
    return {"X-API-Key": "test-key-alice"}


@pytest.fixture
def hak_product() -> NormalizedProduct:
    return NormalizedProduct(
        id="8720600618161",
        source=DataSource.OPEN_FOOD_FACTS,
        name="Hak Chili sin carne schotel",
        brand="Hak",
        barcode="8720600618161",
        ingredients_text="bruine bonen, kidneybonen, tomaat, paprika, ui, chilipeper",
    )
