# src/turbodash_kpi/infrastructure/database/models/kpi.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine tables: registry, targets, overrides, actuals, status map, source rows."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from turbodash_kpi.infrastructure.database.models.base import (
    DECIMAL_TYPE,
    Base,
    IdentityMixin,
    TimestampMixin,
)

_MONTH_CHECK = "month BETWEEN 1 AND 12"


class MetricDefinitionModel(TimestampMixin, Base):
    """Registered metric (base or derived)."""

    __tablename__ = "metric_definitions"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    formula: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class MonthlyTargetModel(IdentityMixin, TimestampMixin, Base):
    """Planned value of a metric for one month."""

    __tablename__ = "monthly_targets"
    __table_args__ = (
        UniqueConstraint("year", "month", "metric_key"),
        CheckConstraint(_MONTH_CHECK, name="month_range"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    metric_key: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    target_value: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False)


class MetricOverrideModel(IdentityMixin, TimestampMixin, Base):
    """Manual override; one row per ``(year, month, metric_key)``."""

    __tablename__ = "metric_overrides"
    __table_args__ = (
        UniqueConstraint("year", "month", "metric_key"),
        CheckConstraint(_MONTH_CHECK, name="month_range"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    metric_key: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    override_value: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


class MetricActualModel(Base):
    """Recompute snapshot row, replaced as a whole per year."""

    __tablename__ = "metric_actuals"
    __table_args__ = (
        CheckConstraint(_MONTH_CHECK, name="month_range"),
        Index("ix_metric_actuals_year_metric_key", "year", "metric_key"),
    )

    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    month: Mapped[int] = mapped_column(Integer, primary_key=True)
    metric_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ContractStatusMapModel(IdentityMixin, TimestampMixin, Base):
    """Classification of a (normalized) contract status as active or not."""

    __tablename__ = "contract_status_map"

    status: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)


class ContractModel(Base):
    """Customer contract (read-only source for aggregations)."""

    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(64), nullable=False)
    recurring_value: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False, default=0)
    one_time_value: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False, default=0)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class LedgerEntryModel(Base):
    """Financial ledger entry (read-only source for aggregations)."""

    __tablename__ = "ledger_entries"
    __table_args__ = (Index("ix_ledger_entries_entry_date_category", "entry_date", "category"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL_TYPE, nullable=False)


__all__ = [
    "ContractModel",
    "ContractStatusMapModel",
    "LedgerEntryModel",
    "MetricActualModel",
    "MetricDefinitionModel",
    "MetricOverrideModel",
    "MonthlyTargetModel",
]
