# tests/integration/test_app.py
from __future__ import annotations

import uuid

import httpx
import pytest
from fastapi import FastAPI

from turbodash_kpi.main import create_app


@pytest.mark.asyncio
async def test_healthz(client: httpx.AsyncClient) -> None:
    resp = await client.get("/healthz")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "turbodash-kpi"
    assert "version" in body


@pytest.mark.asyncio
async def test_metrics_exposes_kpi_collectors(client: httpx.AsyncClient) -> None:
    resp = await client.get("/metrics")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    for name in (
        "kpi_recompute_duration_seconds",
        "kpi_recompute_runs_total",
        "kpi_recompute_issues_total",
        "kpi_overrides_applied_total",
    ):
        assert name in resp.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: httpx.AsyncClient) -> None:
    resp = await client.get("/healthz", headers={"X-Request-ID": "abc-123"})

    assert resp.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_unsafe_request_id_is_replaced(client: httpx.AsyncClient) -> None:
    resp = await client.get("/healthz", headers={"X-Request-ID": "bad id; drop"})

    generated = resp.headers["X-Request-ID"]
    assert generated != "bad id; drop"
    assert uuid.UUID(generated).version == 4


@pytest.mark.asyncio
async def test_validation_error_envelope(client: httpx.AsyncClient) -> None:
    resp = await client.get("/v1/kpi/actuals", params={"year": "abc"})

    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"] == "Request validation failed"
    assert error["details"]["errors"]
    assert error["trace_id"] == resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: httpx.AsyncClient) -> None:
    resp = await client.get("/v1/kpi/nope")

    assert resp.status_code == 404
    assert resp.json()["error"]["http_status"] == 404


@pytest.mark.asyncio
async def test_unhandled_error_is_500_envelope() -> None:
    app: FastAPI = create_app()

    async def _boom() -> None:
        raise RuntimeError("kaboom")

    app.add_api_route("/boom", _boom)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        resp = await http.get("/boom")

    assert resp.status_code == 500
    error = resp.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert error["message"] == "Internal server error"
    assert "kaboom" not in resp.text
