# src/turbodash_kpi/application/uow.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Unit of Work (Application Layer).

Purpose:
    Define the abstract Unit-of-Work boundary used by KPI use cases to
    coordinate transactional work across the registry, override, actuals, and
    source-data repositories.

    This module is infrastructure-agnostic:
        * No SQLAlchemy / DB / HTTP imports.
        * No concrete repository implementations.
        * Only Protocols and helper utilities for use cases.

    The SQLAlchemy-backed implementation lives in ``adapters/uow``.

Layer:
    application
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Any, Protocol, TypeVar, runtime_checkable

TResult = TypeVar("TResult")


@runtime_checkable
class UnitOfWork(Protocol, AbstractAsyncContextManager["UnitOfWork"]):
    """Abstract Unit-of-Work contract for application use cases."""

    async def __aenter__(self) -> UnitOfWork:
        """Enter the transactional scope and return the active UoW."""
        raise NotImplementedError

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Exit the transactional scope, rolling back uncommitted work."""
        raise NotImplementedError

    async def commit(self) -> None:
        """Commit all pending changes for this UnitOfWork."""
        raise NotImplementedError

    async def rollback(self) -> None:
        """Roll back any pending changes for this UnitOfWork."""
        raise NotImplementedError

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository registered for a repository protocol type.

        Args:
            repo_type:
                Repository protocol from ``domain.interfaces.repositories``
                used as the lookup key.

        Raises:
            KeyError: If no repository is registered for ``repo_type``.
        """
        raise NotImplementedError


async def run_in_uow(  # noqa: UP047
    uow: UnitOfWork,
    fn: Callable[[UnitOfWork], Awaitable[TResult]],
) -> TResult:
    """Execute a coroutine against a UnitOfWork with commit/rollback semantics.

    On success the transaction is committed; on exception it is rolled back
    and the exception is re-raised.

    Args:
        uow: UnitOfWork instance providing transactional boundaries.
        fn: Callable that receives the active UnitOfWork and returns a result.

    Returns:
        TResult: The result of the callable.
    """
    async with uow as tx:
        try:
            result = await fn(tx)
        except Exception:
            await tx.rollback()
            raise
        else:
            await tx.commit()
            return result


__all__ = ["UnitOfWork", "run_in_uow"]
