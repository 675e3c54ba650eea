# src/processed_or_not/domain/models.py
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------


class DataSource(StrEnum):
    OPEN_FOOD_FACTS = "open_food_facts"
    USDA_FOODDATA = "usda_fooddata"
    UPC_ITEMDB = "upc_itemdb"
    EAN_SEARCH = "ean_search"
    MANUAL = "manual"


class InputType(StrEnum):
    BARCODE = "barcode"
    TEXT = "text"


# ---------------------------------------------------------------------------
# Aggregate: NormalizedProduct
# Source-agnostisches Produktmodell, das alle Adapter liefern.
# ---------------------------------------------------------------------------


class NormalizedProduct(BaseModel):
    """
    Einheitliches internes Produktmodell.
    Der Orchestrator interpretiert nur `is_usable`, alle anderen Felder werden
    unverändert an den Client und den Produktspeicher weitergereicht.
    """

    id: str = Field(description="Source-spezifischer Identifier (Barcode, fdcId, ...)")
    source: DataSource
    name: str | None = Field(default=None, max_length=512)
    brand: str | None = None
    barcode: str | None = None
    ingredients_text: str | None = None
    # Nährwerte per 100g/100ml, Schlüssel nach OFF-Konvention (z.B. "sugars_100g")
    nutriments: dict[str, Decimal] = Field(default_factory=dict)
    image_url: str | None = None

    @property
    def is_usable(self) -> bool:
        return bool((self.name or "").strip() or (self.ingredients_text or "").strip())

    model_config = {"frozen": True}


class SourceResult(BaseModel):
    """Ergebnis eines einzelnen Adapter-Aufrufs. Wird nach Rückgabe nicht mehr verändert."""

    source_name: str
    found: bool
    product: NormalizedProduct | None = None
    error_message: str | None = None

    model_config = {"frozen": True}


class SourceError(BaseModel):
    source: str
    message: str

    model_config = {"frozen": True}


class LookupOutcome(BaseModel):
    key: str
    input_type: InputType
    found: bool
    product: NormalizedProduct | None = None
    source_name: str | None = None
    tried_sources: list[str] = Field(default_factory=list)
    errors: list[SourceError] = Field(default_factory=list)
    # True, wenn ein neuerer Lauf für denselben Key diesen Lauf abgelöst hat
    superseded: bool = False
    from_store: bool = False


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class ProgressEntry(BaseModel):
    """
    Live-Status eines laufenden (oder gerade beendeten) Lookups.
    Serialisiert in camelCase, so wie Polling- und WebSocket-Clients es erwarten.
    """

    key: str
    current_source: str = ""
    completed_sources: tuple[str, ...] = ()
    total_sources: int = 0
    found: bool = False
    is_complete: bool = False
    error: str | None = None
    timestamp: float = 0.0
    run_id: int = 0

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


ProgressEventKind = Literal["progress", "complete", "error"]


class ProgressEvent(BaseModel):
    kind: ProgressEventKind
    entry: ProgressEntry

    model_config = {"frozen": True}

    def to_message(self) -> dict[str, object]:
        return {"type": self.kind, **self.entry.model_dump(mode="json", by_alias=True)}


# ---------------------------------------------------------------------------
# Search History
# ---------------------------------------------------------------------------


class SearchHistoryEntry(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(description="Aus dem API-Key abgeleitete Tenant-ID")
    query: str
    input_type: InputType
    found: bool
    source_name: str | None = None
    searched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# ---------------------------------------------------------------------------
# API Request/Response Schemas
# ---------------------------------------------------------------------------


class ProductLookupResponse(BaseModel):
    product: NormalizedProduct
    lookup_source: str
    from_store: bool = False


class LookupFailureDetail(BaseModel):
    message: str
    tried_sources: list[str]
    errors: list[SourceError]
    allow_manual_entry: bool = True


class ManualProductCreate(BaseModel):
    barcode: str = Field(min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=512)
    brand: str | None = None
    ingredients_text: str | None = None
    nutriments: dict[str, Decimal] = Field(default_factory=dict)
    image_url: str | None = None

    @model_validator(mode="after")
    def name_or_ingredients_required(self) -> Self:
        if not (self.name or "").strip() and not (self.ingredients_text or "").strip():
            raise ValueError("name oder ingredients_text muss gesetzt sein")
        return self

    model_config = {"frozen": True}
