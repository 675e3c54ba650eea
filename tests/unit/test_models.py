# tests/unit/test_models.py
from decimal import Decimal

import pytest
from pydantic import ValidationError

from processed_or_not.domain.models import (
    DataSource,
    ManualProductCreate,
    NormalizedProduct,
    ProgressEntry,
    ProgressEvent,
)

# ---------------------------------------------------------------------------
# NormalizedProduct.is_usable
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("name", "ingredients", "expected"),
    [
        ("Hak Chili", None, True),
        (None, "water, salt", True),
        ("  ", "", False),
        (None, None, False),
    ],
)
def test_is_usable_requires_name_or_ingredients(
    name: str | None, ingredients: str | None, expected: bool
) -> None:
    product = NormalizedProduct(
        id="1", source=DataSource.OPEN_FOOD_FACTS, name=name, ingredients_text=ingredients
    )
    assert product.is_usable is expected


def test_normalized_product_is_frozen() -> None:
    product = NormalizedProduct(id="1", source=DataSource.MANUAL, name="Test")
    with pytest.raises(ValidationError):
        product.name = "Changed"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# ManualProductCreate
# ---------------------------------------------------------------------------


def test_manual_product_requires_name_or_ingredients() -> None:
    with pytest.raises(ValidationError):
        ManualProductCreate(barcode="8720600618161", brand="Hak")


def test_manual_product_with_ingredients_only_is_valid() -> None:
    payload = ManualProductCreate(
        barcode="8720600618161",
        ingredients_text="bonen, tomaat",
        nutriments={"sugars_100g": Decimal("3.1")},
    )
    assert payload.name is None
    assert payload.nutriments["sugars_100g"] == Decimal("3.1")


def test_manual_product_rejects_empty_barcode() -> None:
    with pytest.raises(ValidationError):
        ManualProductCreate(barcode="", name="Test")


# ---------------------------------------------------------------------------
# ProgressEntry / ProgressEvent
# ---------------------------------------------------------------------------


def test_progress_entry_accepts_camel_case_and_snake_case() -> None:
    by_alias = ProgressEntry.model_validate({"key": "k", "currentSource": "A", "totalSources": 2})
    by_name = ProgressEntry(key="k", current_source="A", total_sources=2)
    assert by_alias == by_name


def test_progress_event_message_is_flat_camel_case() -> None:
    entry = ProgressEntry(
        key="123",
        current_source="",
        completed_sources=("OpenFoodFacts",),
        total_sources=3,
        found=True,
        is_complete=True,
        timestamp=1700000000.0,
        run_id=4,
    )

    message = ProgressEvent(kind="complete", entry=entry).to_message()

    assert message == {
        "type": "complete",
        "key": "123",
        "currentSource": "",
        "completedSources": ["OpenFoodFacts"],
        "totalSources": 3,
        "found": True,
        "isComplete": True,
        "error": None,
        "timestamp": 1700000000.0,
        "runId": 4,
    }
