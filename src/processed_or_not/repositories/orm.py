from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ProductORM(Base):
    __tablename__ = "products"

    barcode: Mapped[str] = mapped_column(String, primary_key=True)
    source: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Vollständiges NormalizedProduct als JSON
    data: Mapped[str] = mapped_column(Text, nullable=False)


class SearchHistoryORM(Base):
    __tablename__ = "search_history"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    searched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
