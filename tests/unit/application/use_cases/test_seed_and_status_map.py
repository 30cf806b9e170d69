# tests/unit/application/use_cases/test_seed_and_status_map.py
from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest

from turbodash_kpi.application.schemas.dto.kpi import (
    CreateStatusMappingRequestDTO,
    RecomputeYearRequestDTO,
    UpdateStatusMappingRequestDTO,
)
from turbodash_kpi.application.seeds.bp_2026 import BP_2026_PLAN, BP_YEAR
from turbodash_kpi.application.use_cases.kpi.manage_contract_status_map import (
    CreateStatusMappingUseCase,
    DeleteStatusMappingUseCase,
    ListStatusMappingsUseCase,
    UpdateStatusMappingUseCase,
)
from turbodash_kpi.application.use_cases.kpi.recompute_year import (
    RecomputeYearUseCase,
    YearLocks,
)
from turbodash_kpi.application.use_cases.kpi.seed_baseline import SeedBaselineUseCase
from turbodash_kpi.domain.enums.kpi import RecomputeErrorKind
from turbodash_kpi.domain.exceptions.kpi import DuplicateStatusError, StatusMappingNotFound

# --------------------------------------------------------------------------- #
# Baseline seed                                                               #
# --------------------------------------------------------------------------- #


def test_plan_has_twelve_targets_per_metric() -> None:
    keys = [item.definition.key for item in BP_2026_PLAN]

    assert len(keys) == len(set(keys))
    for item in BP_2026_PLAN:
        rows = item.monthly_targets()
        assert [r.month for r in rows] == list(range(1, 13))
        assert {r.year for r in rows} == {BP_YEAR}


@pytest.mark.asyncio
async def test_seed_is_idempotent(fake_uow: Any, kpi_store: Any) -> None:
    use_case = SeedBaselineUseCase(uow=fake_uow)

    first = await use_case.execute()
    definitions_after_first = dict(kpi_store.definitions)
    second = await use_case.execute()

    assert first == second
    assert first.metrics_processed == len(BP_2026_PLAN)
    assert first.targets_upserted == 12 * len(BP_2026_PLAN)
    assert kpi_store.definitions == definitions_after_first
    assert len(kpi_store.targets) == 12 * len(BP_2026_PLAN)
    assert kpi_store.actuals == {}
    assert kpi_store.overrides == {}


@pytest.mark.asyncio
async def test_seeded_registry_has_no_configuration_errors(fake_uow: Any) -> None:
    await SeedBaselineUseCase(uow=fake_uow).execute()

    result = await RecomputeYearUseCase(uow=fake_uow, locks=YearLocks()).execute(
        RecomputeYearRequestDTO(year=BP_YEAR)
    )

    assert result.derived_metrics_computed > 0
    assert not [i for i in result.errors if i.kind is RecomputeErrorKind.CONFIGURATION]


@pytest.mark.asyncio
async def test_seed_restores_edited_definition(fake_uow: Any, kpi_store: Any) -> None:
    await SeedBaselineUseCase(uow=fake_uow).execute()
    first_key = BP_2026_PLAN[0].definition.key
    kpi_store.definitions.pop(first_key)
    kpi_store.targets = {k: v for k, v in kpi_store.targets.items() if k[2] != first_key}

    await SeedBaselineUseCase(uow=fake_uow).execute()

    assert kpi_store.definitions[first_key] == BP_2026_PLAN[0].definition
    assert kpi_store.targets[(BP_YEAR, 1, first_key)].target_value == Decimal(
        BP_2026_PLAN[0].targets[0]
    )


# --------------------------------------------------------------------------- #
# Contract status map                                                         #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio
async def test_create_normalizes_status(fake_uow: Any) -> None:
    mapping = await CreateStatusMappingUseCase(uow=fake_uow).execute(
        CreateStatusMappingRequestDTO(status="  Ativo ", is_active=True)
    )

    assert mapping.status == "ativo"
    assert mapping.is_active is True


@pytest.mark.asyncio
async def test_duplicate_after_normalization_is_rejected(fake_uow: Any) -> None:
    use_case = CreateStatusMappingUseCase(uow=fake_uow)
    await use_case.execute(CreateStatusMappingRequestDTO(status="ativo", is_active=True))

    with pytest.raises(DuplicateStatusError):
        await use_case.execute(CreateStatusMappingRequestDTO(status="ATIVO", is_active=False))


@pytest.mark.asyncio
async def test_blank_status_is_rejected(fake_uow: Any) -> None:
    with pytest.raises(ValueError):
        await CreateStatusMappingUseCase(uow=fake_uow).execute(
            CreateStatusMappingRequestDTO(status="   ", is_active=True)
        )


@pytest.mark.asyncio
async def test_update_rename_and_flag(fake_uow: Any) -> None:
    create = CreateStatusMappingUseCase(uow=fake_uow)
    update = UpdateStatusMappingUseCase(uow=fake_uow)
    ativo = await create.execute(CreateStatusMappingRequestDTO(status="ativo", is_active=True))
    pausado = await create.execute(
        CreateStatusMappingRequestDTO(status="pausado", is_active=True)
    )

    flipped = await update.execute(
        UpdateStatusMappingRequestDTO(mapping_id=pausado.id, is_active=False)
    )
    assert (flipped.status, flipped.is_active) == ("pausado", False)

    renamed = await update.execute(
        UpdateStatusMappingRequestDTO(mapping_id=pausado.id, status="Suspenso")
    )
    assert renamed.status == "suspenso"

    with pytest.raises(DuplicateStatusError):
        await update.execute(UpdateStatusMappingRequestDTO(mapping_id=pausado.id, status="ativo"))

    # Renaming a mapping to its own status is allowed.
    same = await update.execute(UpdateStatusMappingRequestDTO(mapping_id=ativo.id, status="Ativo"))
    assert same.id == ativo.id


@pytest.mark.asyncio
async def test_missing_mapping(fake_uow: Any) -> None:
    with pytest.raises(StatusMappingNotFound):
        await UpdateStatusMappingUseCase(uow=fake_uow).execute(
            UpdateStatusMappingRequestDTO(mapping_id=uuid4(), is_active=True)
        )
    with pytest.raises(StatusMappingNotFound):
        await DeleteStatusMappingUseCase(uow=fake_uow).execute(uuid4())


@pytest.mark.asyncio
async def test_delete_and_list(fake_uow: Any) -> None:
    create = CreateStatusMappingUseCase(uow=fake_uow)
    await create.execute(CreateStatusMappingRequestDTO(status="triagem", is_active=True))
    encerrado = await create.execute(
        CreateStatusMappingRequestDTO(status="encerrado", is_active=False)
    )

    listed = await ListStatusMappingsUseCase(uow=fake_uow).execute()
    assert [m.status for m in listed] == ["encerrado", "triagem"]

    await DeleteStatusMappingUseCase(uow=fake_uow).execute(encerrado.id)

    assert [m.status for m in await ListStatusMappingsUseCase(uow=fake_uow).execute()] == [
        "triagem"
    ]
