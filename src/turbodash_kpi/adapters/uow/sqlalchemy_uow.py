# src/turbodash_kpi/adapters/uow/sqlalchemy_uow.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy-backed Unit of Work implementation.

Purpose:
    Provide a concrete implementation of the application-layer UnitOfWork
    protocol using SQLAlchemy's AsyncSession. This UoW coordinates the KPI
    repositories within a single transactional scope.

Layer:
    adapters/uow
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from turbodash_kpi.adapters.repositories.contract_status_map_repository import (
    SqlAlchemyContractStatusMapRepository,
)
from turbodash_kpi.adapters.repositories.metric_actuals_repository import (
    SqlAlchemyMetricActualsRepository,
)
from turbodash_kpi.adapters.repositories.metric_overrides_repository import (
    SqlAlchemyMetricOverridesRepository,
)
from turbodash_kpi.adapters.repositories.metric_registry_repository import (
    SqlAlchemyMetricDefinitionsRepository,
    SqlAlchemyMonthlyTargetsRepository,
)
from turbodash_kpi.adapters.repositories.source_data_repository import (
    SqlAlchemySourceDataRepository,
)
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.domain.exceptions.kpi import PersistenceError
from turbodash_kpi.domain.interfaces.repositories.contract_status_map_repository import (
    ContractStatusMapRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_actuals_repository import (
    MetricActualsRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_overrides_repository import (
    MetricOverridesRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
    MonthlyTargetsRepository,
)
from turbodash_kpi.domain.interfaces.repositories.source_data_repository import (
    SourceDataRepository,
)

RepoFactory = Callable[[AsyncSession], Any]

#: Default wiring: repository protocol -> SQLAlchemy implementation.
DEFAULT_REPO_FACTORIES: Mapping[type[Any], RepoFactory] = {
    MetricDefinitionsRepository: SqlAlchemyMetricDefinitionsRepository,
    MonthlyTargetsRepository: SqlAlchemyMonthlyTargetsRepository,
    MetricOverridesRepository: SqlAlchemyMetricOverridesRepository,
    MetricActualsRepository: SqlAlchemyMetricActualsRepository,
    ContractStatusMapRepository: SqlAlchemyContractStatusMapRepository,
    SourceDataRepository: SqlAlchemySourceDataRepository,
}


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-based UnitOfWork implementation.

    Coordinates a single AsyncSession and a set of repositories within a
    transactional context. Intended to be used via:

        async with SqlAlchemyUnitOfWork(...) as uow:
            repo = uow.get_repository(MetricOverridesRepository)
            ...
            await uow.commit()

    Work that is not committed is rolled back when the session closes.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        repo_factories: Mapping[type[Any], RepoFactory] | None = None,
    ) -> None:
        """Initialize the UnitOfWork.

        Args:
            session_factory:
                Factory for creating new AsyncSession instances.
            repo_factories:
                Optional mapping from repository type to a factory taking an
                AsyncSession. Entries override ``DEFAULT_REPO_FACTORIES``.
        """
        self._session_factory = session_factory
        self._session: AsyncSession | None = None
        self._repo_factories: dict[type[Any], RepoFactory] = {
            **DEFAULT_REPO_FACTORIES,
            **(dict(repo_factories) if repo_factories is not None else {}),
        }
        self._repos: dict[type[Any], Any] = {}
        self._committed = False
        self._rolled_back = False

    # ------------------------------------------------------------------
    # Async context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        """Enter the UnitOfWork context and open a new AsyncSession.

        Raises:
            RuntimeError: If a session is already active (nested usage).
        """
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active; nested usage is not supported.")

        self._session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repos.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Exit the context, rolling back on error and closing the session."""
        try:
            if exc_type is not None and not self._rolled_back:
                await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None
            self._repos.clear()
        return None

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        """Commit the current transaction.

        No-op if the UnitOfWork was already committed or rolled back.

        Raises:
            RuntimeError: If called without an active session.
            PersistenceError: If the database rejects the commit. The
                transaction is rolled back before raising.
        """
        if self._session is None:
            raise RuntimeError("Cannot commit: UnitOfWork has no active session.")

        if self._committed or self._rolled_back:
            return

        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self.rollback()
            raise PersistenceError(
                f"Failed to commit unit of work: {exc.__class__.__name__}",
                details={"reason": str(exc)},
            ) from exc
        self._committed = True

    async def rollback(self) -> None:
        """Roll back the current transaction; no-op when already finished."""
        if self._session is None:
            return

        if self._rolled_back or self._committed:
            return

        await self._session.rollback()
        self._rolled_back = True

    # ------------------------------------------------------------------
    # Repository resolution
    # ------------------------------------------------------------------

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository bound to the active session for ``repo_type``.

        Instances are cached for the lifetime of the UnitOfWork context.

        Raises:
            RuntimeError: If called outside of an active UnitOfWork context.
            KeyError: If no factory is registered for ``repo_type``.
        """
        if self._session is None:
            raise RuntimeError(
                "get_repository() called outside of an active UnitOfWork scope. "
                "Use 'async with uow:' before requesting repositories.",
            )

        if repo_type in self._repos:
            return self._repos[repo_type]

        try:
            factory = self._repo_factories[repo_type]
        except KeyError as exc:
            raise KeyError(
                f"No repository factory registered for type {repo_type!r}.",
            ) from exc

        repo = factory(self._session)
        self._repos[repo_type] = repo
        return repo


__all__ = ["DEFAULT_REPO_FACTORIES", "SqlAlchemyUnitOfWork"]
