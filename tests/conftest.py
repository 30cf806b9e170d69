# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Collection, Generator, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import turbodash_kpi.infrastructure.database.models.kpi  # noqa: F401
from turbodash_kpi.config.settings import get_settings
from turbodash_kpi.domain.entities.metric import (
    MetricActual,
    MetricDefinition,
    MetricOverride,
    MonthlyTarget,
)
from turbodash_kpi.domain.entities.source_data import (
    ContractRecord,
    ContractStatusMapping,
    LedgerEntry,
    normalize_status,
)
from turbodash_kpi.domain.exceptions.kpi import (
    DuplicateMetricError,
    MetricNotFound,
    PersistenceError,
)
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
from turbodash_kpi.infrastructure.database.models.base import Base

# turbodash_kpi.main builds its settings at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

# --------------------------------------------------------------------------- #
# In-memory store and fake repositories                                       #
# --------------------------------------------------------------------------- #


@dataclass
class InMemoryKpiStore:
    """Mutable state shared by the fake repositories of one test."""

    definitions: dict[str, MetricDefinition] = field(default_factory=dict)
    targets: dict[tuple[int, int, str], MonthlyTarget] = field(default_factory=dict)
    overrides: dict[UUID, MetricOverride] = field(default_factory=dict)
    actuals: dict[int, list[MetricActual]] = field(default_factory=dict)
    mappings: dict[UUID, ContractStatusMapping] = field(default_factory=dict)
    contracts: list[ContractRecord] = field(default_factory=list)
    ledger: list[LedgerEntry] = field(default_factory=list)
    fail_persist: bool = False

    def add_definitions(self, *definitions: MetricDefinition) -> None:
        for definition in definitions:
            self.definitions[definition.key] = definition

    def snapshot(self) -> tuple[Any, ...]:
        return (
            dict(self.definitions),
            dict(self.targets),
            dict(self.overrides),
            {year: list(rows) for year, rows in self.actuals.items()},
            dict(self.mappings),
        )

    def restore(self, state: tuple[Any, ...]) -> None:
        self.definitions, self.targets, self.overrides, self.actuals, self.mappings = state


class _FakeDefinitionsRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def list_definitions(self, *, include_inactive: bool = True) -> list[MetricDefinition]:
        return [
            d
            for _, d in sorted(self._store.definitions.items())
            if include_inactive or d.active
        ]

    async def get_definition(self, metric_key: str) -> MetricDefinition | None:
        return self._store.definitions.get(metric_key)

    async def create_definition(self, definition: MetricDefinition) -> MetricDefinition:
        if definition.key in self._store.definitions:
            raise DuplicateMetricError(f"Metric {definition.key!r} already exists.")
        self._store.definitions[definition.key] = definition
        return definition

    async def update_definition(self, definition: MetricDefinition) -> MetricDefinition:
        if definition.key not in self._store.definitions:
            raise MetricNotFound(definition.key)
        self._store.definitions[definition.key] = definition
        return definition

    async def upsert_definition(self, definition: MetricDefinition) -> bool:
        created = definition.key not in self._store.definitions
        self._store.definitions[definition.key] = definition
        return created

    async def delete_definition(self, metric_key: str) -> bool:
        return self._store.definitions.pop(metric_key, None) is not None


class _FakeTargetsRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def upsert_targets(self, targets: Sequence[MonthlyTarget]) -> int:
        for target in targets:
            self._store.targets[(target.year, target.month, target.metric_key)] = target
        return len(targets)

    async def list_targets(
        self, *, year: int, metric_key: str | None = None
    ) -> list[MonthlyTarget]:
        rows = [
            t
            for t in self._store.targets.values()
            if t.year == year and (metric_key is None or t.metric_key == metric_key)
        ]
        return sorted(rows, key=lambda t: (t.metric_key, t.month))

    async def delete_for_metric(self, metric_key: str) -> int:
        doomed = [k for k in self._store.targets if k[2] == metric_key]
        for key in doomed:
            del self._store.targets[key]
        return len(doomed)


class _FakeOverridesRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def upsert_override(
        self,
        *,
        year: int,
        month: int,
        metric_key: str,
        override_value: Decimal,
        note: str | None,
        updated_by: str | None,
    ) -> MetricOverride:
        existing = next(
            (
                o
                for o in self._store.overrides.values()
                if (o.year, o.month, o.metric_key) == (year, month, metric_key)
            ),
            None,
        )
        override = MetricOverride(
            id=existing.id if existing is not None else uuid4(),
            year=year,
            month=month,
            metric_key=metric_key,
            override_value=override_value,
            note=note,
            updated_by=updated_by,
            updated_at=datetime.now(UTC),
        )
        self._store.overrides[override.id] = override
        return override

    async def get_override(self, override_id: UUID) -> MetricOverride | None:
        return self._store.overrides.get(override_id)

    async def delete_override(self, override_id: UUID) -> bool:
        return self._store.overrides.pop(override_id, None) is not None

    async def list_overrides(self, *, years: Collection[int]) -> list[MetricOverride]:
        rows = [o for o in self._store.overrides.values() if o.year in years]
        return sorted(rows, key=lambda o: (o.year, o.month, o.metric_key))

    async def count_for_metric(self, metric_key: str) -> int:
        return sum(1 for o in self._store.overrides.values() if o.metric_key == metric_key)


class _FakeActualsRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def replace_year(self, year: int, actuals: Sequence[MetricActual]) -> int:
        if self._store.fail_persist:
            raise PersistenceError(
                f"Failed to persist metric actuals for {year}: OperationalError",
                details={"year": year},
            )
        self._store.actuals[year] = list(actuals)
        return len(actuals)

    async def list_actuals(
        self, *, year: int, month: int | None = None, metric_key: str | None = None
    ) -> list[MetricActual]:
        rows = [
            a
            for a in self._store.actuals.get(year, [])
            if (month is None or a.month == month)
            and (metric_key is None or a.metric_key == metric_key)
        ]
        return sorted(rows, key=lambda a: (a.month, a.metric_key))


class _FakeStatusMapRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def list_mappings(self) -> list[ContractStatusMapping]:
        return sorted(self._store.mappings.values(), key=lambda m: m.status)

    async def get_mapping(self, mapping_id: UUID) -> ContractStatusMapping | None:
        return self._store.mappings.get(mapping_id)

    async def get_by_status(self, status: str) -> ContractStatusMapping | None:
        wanted = normalize_status(status)
        return next((m for m in self._store.mappings.values() if m.status == wanted), None)

    async def create_mapping(self, *, status: str, is_active: bool) -> ContractStatusMapping:
        mapping = ContractStatusMapping(
            id=uuid4(), status=normalize_status(status), is_active=is_active
        )
        self._store.mappings[mapping.id] = mapping
        return mapping

    async def update_mapping(
        self,
        mapping_id: UUID,
        *,
        status: str | None = None,
        is_active: bool | None = None,
    ) -> ContractStatusMapping | None:
        current = self._store.mappings.get(mapping_id)
        if current is None:
            return None
        updated = replace(
            current,
            status=normalize_status(status) if status is not None else current.status,
            is_active=is_active if is_active is not None else current.is_active,
        )
        self._store.mappings[mapping_id] = updated
        return updated

    async def delete_mapping(self, mapping_id: UUID) -> bool:
        return self._store.mappings.pop(mapping_id, None) is not None


class _FakeSourceRepo:
    def __init__(self, store: InMemoryKpiStore) -> None:
        self._store = store

    async def list_contracts(self) -> list[ContractRecord]:
        return sorted(self._store.contracts, key=lambda c: c.contract_id)

    async def list_ledger_entries(self, *, start: date, end: date) -> list[LedgerEntry]:
        rows = [e for e in self._store.ledger if start <= e.entry_date <= end]
        return sorted(rows, key=lambda e: (e.entry_date, e.entry_id))


class FakeUnitOfWork:
    """UnitOfWork double: uncommitted changes are discarded on exit or rollback."""

    def __init__(self, store: InMemoryKpiStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0
        self._pending: tuple[Any, ...] | None = None
        self._repos: dict[type[Any], Any] = {
            MetricDefinitionsRepository: _FakeDefinitionsRepo(store),
            MonthlyTargetsRepository: _FakeTargetsRepo(store),
            MetricOverridesRepository: _FakeOverridesRepo(store),
            MetricActualsRepository: _FakeActualsRepo(store),
            ContractStatusMapRepository: _FakeStatusMapRepo(store),
            SourceDataRepository: _FakeSourceRepo(store),
        }

    async def __aenter__(self) -> FakeUnitOfWork:
        self._pending = self.store.snapshot()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if self._pending is not None:
            self.store.restore(self._pending)
            self._pending = None

    async def commit(self) -> None:
        self.commits += 1
        self._pending = None

    async def rollback(self) -> None:
        self.rollbacks += 1
        if self._pending is not None:
            self.store.restore(self._pending)
            self._pending = None

    def get_repository(self, repo_type: type[Any]) -> Any:
        return self._repos[repo_type]


@pytest.fixture
def kpi_store() -> InMemoryKpiStore:
    """Empty in-memory KPI state."""
    return InMemoryKpiStore()


@pytest.fixture
def fake_uow(kpi_store: InMemoryKpiStore) -> FakeUnitOfWork:
    """UnitOfWork double bound to ``kpi_store``."""
    return FakeUnitOfWork(kpi_store)


# --------------------------------------------------------------------------- #
# SQLite-backed fixtures                                                      #
# --------------------------------------------------------------------------- #


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """File-backed SQLite URL; every connection sees the same database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"


@pytest.fixture
async def session_factory(
    sqlite_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a freshly created KPI schema."""
    engine = create_async_engine(sqlite_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    finally:
        await engine.dispose()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop cached settings so env changes made by a test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force pytest-anyio to use asyncio (not trio)."""
    return "asyncio"
