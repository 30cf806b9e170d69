# tests/unit/application/use_cases/test_manage_overrides.py
from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest

from turbodash_kpi.application.schemas.dto.kpi import CreateOverrideRequestDTO
from turbodash_kpi.application.use_cases.kpi.manage_overrides import (
    CreateOverrideUseCase,
    DeleteOverrideUseCase,
    ListOverridesUseCase,
)
from turbodash_kpi.domain.entities.metric import MetricDefinition
from turbodash_kpi.domain.enums.kpi import MetricKind
from turbodash_kpi.domain.exceptions.kpi import (
    InvalidOverrideError,
    MetricNotFound,
    OverrideNotFound,
)


@pytest.fixture(autouse=True)
def _registry(kpi_store: Any) -> None:
    kpi_store.add_definitions(
        MetricDefinition(key="mrr_active", title="MRR", kind=MetricKind.BASE),
        MetricDefinition(key="legacy", title="Legacy", kind=MetricKind.BASE, active=False),
    )


def _req(month: int = 1, value: str = "120000", **kwargs: Any) -> CreateOverrideRequestDTO:
    fields: dict[str, Any] = {
        "year": 2026,
        "month": month,
        "metric_key": "mrr_active",
        "override_value": Decimal(value),
    }
    fields.update(kwargs)
    return CreateOverrideRequestDTO(**fields)


@pytest.mark.asyncio
async def test_create_override(fake_uow: Any) -> None:
    override = await CreateOverrideUseCase(uow=fake_uow).execute(
        _req(note="contrato renegociado", updated_by="finance@turbodash")
    )

    assert override.override_value == Decimal("120000")
    assert override.note == "contrato renegociado"
    assert override.updated_by == "finance@turbodash"
    assert override.updated_at is not None


@pytest.mark.asyncio
async def test_second_write_replaces_value_in_place(fake_uow: Any, kpi_store: Any) -> None:
    use_case = CreateOverrideUseCase(uow=fake_uow)
    first = await use_case.execute(_req(value="1"))
    second = await use_case.execute(_req(value="2"))

    assert second.id == first.id
    assert len(kpi_store.overrides) == 1
    assert kpi_store.overrides[first.id].override_value == Decimal("2")


@pytest.mark.asyncio
@pytest.mark.parametrize("month", [0, 13])
async def test_month_outside_calendar_is_invalid(fake_uow: Any, month: int) -> None:
    with pytest.raises(InvalidOverrideError):
        await CreateOverrideUseCase(uow=fake_uow).execute(_req(month=month))
    assert fake_uow.commits == 0


@pytest.mark.asyncio
async def test_year_outside_range_is_invalid(fake_uow: Any) -> None:
    with pytest.raises(InvalidOverrideError):
        await CreateOverrideUseCase(uow=fake_uow, max_year=2030).execute(_req(year=2031))


@pytest.mark.asyncio
@pytest.mark.parametrize("metric_key", ["ghost", "legacy"])
async def test_unknown_or_inactive_metric(fake_uow: Any, metric_key: str) -> None:
    with pytest.raises(MetricNotFound):
        await CreateOverrideUseCase(uow=fake_uow).execute(_req(metric_key=metric_key))


@pytest.mark.asyncio
async def test_delete_and_list(fake_uow: Any) -> None:
    create = CreateOverrideUseCase(uow=fake_uow)
    march = await create.execute(_req(month=3))
    await create.execute(_req(month=1))

    listed = await ListOverridesUseCase(uow=fake_uow).execute(2026)
    assert [o.month for o in listed] == [1, 3]

    await DeleteOverrideUseCase(uow=fake_uow).execute(march.id)

    remaining = await ListOverridesUseCase(uow=fake_uow).execute(2026)
    assert [o.month for o in remaining] == [1]
    assert await ListOverridesUseCase(uow=fake_uow).execute(2025) == []


@pytest.mark.asyncio
async def test_delete_missing_override(fake_uow: Any) -> None:
    with pytest.raises(OverrideNotFound):
        await DeleteOverrideUseCase(uow=fake_uow).execute(uuid4())
    assert fake_uow.rollbacks == 1
