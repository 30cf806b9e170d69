# tests/integration/conftest.py
from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from turbodash_kpi.adapters.dependencies.kpi_uow import get_uow
from turbodash_kpi.adapters.uow import SqlAlchemyUnitOfWork
from turbodash_kpi.infrastructure.database.models.kpi import ContractModel
from turbodash_kpi.main import create_app


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Application whose unit of work points at the per-test SQLite database."""
    application = create_app()
    application.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(
        session_factory=session_factory
    )
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
async def running_contract(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """One active contract worth 100000/month since November 2025."""
    async with session_factory() as session:
        session.add(
            ContractModel(
                id="c1",
                client_id="k1",
                status="ativo",
                recurring_value=Decimal("100000"),
                one_time_value=Decimal("0"),
                start_date=date(2025, 11, 1),
            )
        )
        await session.commit()
