# src/turbodash_kpi/adapters/dependencies/kpi_uow.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI UnitOfWork dependency wiring.

Purpose:
    Provide a concrete, SQLAlchemy-backed UnitOfWork instance for KPI use
    cases, backed by the core async_sessionmaker.

Layer:
    adapters/dependencies
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from turbodash_kpi.adapters.uow import SqlAlchemyUnitOfWork
from turbodash_kpi.config.settings import get_settings
from turbodash_kpi.infrastructure.database.session import (
    get_sessionmaker,
    init_engine_and_sessionmaker,
)


def get_uow() -> SqlAlchemyUnitOfWork:
    """Construct a UnitOfWork instance for KPI use cases.

    Behavior:
        - Ensures the global engine/sessionmaker are initialized
          (idempotent, safe to call multiple times).
        - Returns a fresh SqlAlchemyUnitOfWork bound to the global factory.
        - Each call returns a new UoW instance (one per use-case invocation).
    """
    # Lazy-init to support test transports that skip lifespan.
    init_engine_and_sessionmaker(get_settings())

    session_factory: async_sessionmaker[AsyncSession] = get_sessionmaker()
    return SqlAlchemyUnitOfWork(session_factory=session_factory)


__all__ = ["get_uow"]
