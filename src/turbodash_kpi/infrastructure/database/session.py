# src/turbodash_kpi/infrastructure/database/session.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine and session factory.

This module owns the application-global async SQLAlchemy engine and
`async_sessionmaker`, shared by every Unit of Work.

Lifecycle:
    * Call `init_engine_and_sessionmaker(settings)` at app startup (lifespan)
      or at the start of a CLI command.
    * Call `dispose_engine()` during shutdown.

Notes:
    * No business logic here; repositories consume the session through the
      Unit of Work.
    * `pool_pre_ping=True` surfaces dead connections before use.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from turbodash_kpi.config.settings import Settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker.

    Args:
        settings: Application settings providing `database_url` and `db_echo`.

    Raises:
        ValueError: If `database_url` is empty.
    """
    global _engine, _sessionmaker

    if not settings.database_url:
        raise ValueError("database_url must be configured")
    if _engine is not None:
        # Already initialized (idempotent).
        return

    _engine = create_async_engine(
        url=settings.database_url,
        pool_pre_ping=True,
        echo=settings.db_echo,
    )
    _sessionmaker = async_sessionmaker(bind=_engine, expire_on_commit=False, class_=AsyncSession)


async def dispose_engine() -> None:
    """Dispose the global engine at application shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Return the initialized async engine.

    Raises:
        RuntimeError: If the engine is not yet initialized.
    """
    if _engine is None:
        raise RuntimeError("DB engine not initialized (call init_engine_and_sessionmaker)")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the initialized async sessionmaker.

    Raises:
        RuntimeError: If the sessionmaker is not yet initialized.
    """
    if _sessionmaker is None:
        raise RuntimeError("DB sessionmaker not initialized (call init_engine_and_sessionmaker)")
    return _sessionmaker


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_sessionmaker",
    "init_engine_and_sessionmaker",
]
