# src/turbodash_kpi/adapters/repositories/base_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""
BaseRepository: Shared repository foundation for the KPI engine.

Purpose:
    Shared mechanics for all repositories:
      * Safe fetch helpers (optional, all).
      * UTC timestamp helper for audit fields.

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Repositories never commit; use cases own transactions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Base class for all SQLAlchemy repositories."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the target database.
        """
        self._session: AsyncSession = session

    @staticmethod
    def utc_now() -> datetime:
        """Return current UTC time with timezone info."""
        return datetime.now(UTC)

    async def fetch_optional(self, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def fetch_all(self, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await self._session.execute(stmt)
        return list(res.scalars().all())


__all__ = ["BaseRepository"]
