# src/turbodash_kpi/infrastructure/database/models/base.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Declarative Base and persistence mixins for the KPI engine.

This module defines:
    - A project-wide SQLAlchemy Declarative Base with deterministic naming
      conventions (for stable migration diffs).
    - Persistence mixins for identity (UUIDv4) and audit timestamps (UTC).

Notes:
    * Column types are portable (``Uuid``, ``Numeric``, ``DateTime``) so the
      same models run on PostgreSQL (asyncpg) and SQLite (aiosqlite).
    * Persistence-only; no domain behavior.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import MetaData, Numeric, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

__all__ = [
    "DECIMAL_TYPE",
    "Base",
    "IdentityMixin",
    "TimestampMixin",
    "metadata",
    "now_utc",
]

#: Deterministic naming conventions for migration-friendly diffs.
NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTIONS)

#: Monetary and ratio values: 20 integer digits, 8 decimals.
DECIMAL_TYPE = Numeric(28, 8, asdecimal=True)


def now_utc() -> datetime:
    """Return the current UTC time with timezone info."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative Base for all ORM models."""

    metadata = metadata


class IdentityMixin:
    """Mixin providing a UUIDv4 primary key ``id`` column."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """Mixin providing immutable ``created_at`` and mutable ``updated_at`` timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        onupdate=now_utc,
        server_default=func.now(),
    )
