# tests/unit/infrastructure/http/test_errors.py
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel

from turbodash_kpi.domain.exceptions.base import DomainError
from turbodash_kpi.domain.exceptions.kpi import AggregationError
from turbodash_kpi.infrastructure.http import errors


class Payload(BaseModel):
    """Simple request body model used to exercise validation handlers."""

    year: int


def test_error_envelope_includes_optional_fields() -> None:
    payload = errors.error_envelope(
        code="KPI_METRIC_NOT_FOUND",
        http_status=404,
        message="Metric 'ghost' not found.",
        details={"metric_key": "ghost"},
        trace_id="trace-123",
    )

    assert payload == {
        "error": {
            "code": "KPI_METRIC_NOT_FOUND",
            "http_status": 404,
            "message": "Metric 'ghost' not found.",
            "details": {"metric_key": "ghost"},
            "trace_id": "trace-123",
        }
    }


def test_error_envelope_omits_missing_fields() -> None:
    err = errors.error_envelope(code="X", http_status=400, message="bad")["error"]

    assert "details" not in err
    assert "trace_id" not in err


def _make_app_with_handlers() -> FastAPI:
    """Build a FastAPI app wired with the error handlers under test."""
    app = FastAPI()

    app.add_exception_handler(RequestValidationError, errors.handle_validation_error)
    app.add_exception_handler(HTTPException, errors.handle_http_exception)
    app.add_exception_handler(DomainError, errors.handle_domain_error)
    app.add_exception_handler(Exception, errors.handle_unhandled_exception)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.request_id = "trace-xyz"
        return await call_next(request)

    @app.post("/validation")
    async def validation_route(body: Payload) -> dict[str, Any]:
        return {"year": body.year}

    @app.get("/http-exc")
    async def http_exc_route() -> None:
        raise HTTPException(status_code=404, detail="not found")

    @app.get("/domain")
    async def domain_route() -> None:
        raise AggregationError("ledger unavailable", details={"metric_key": "capex"})

    @app.get("/unhandled")
    async def unhandled_route() -> None:
        raise RuntimeError("boom")

    return app


def test_handle_validation_error_envelope_and_trace_id() -> None:
    client = TestClient(_make_app_with_handlers())

    resp = client.post("/validation", json={"year": "not-a-year"})

    assert resp.status_code == 422
    err = resp.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert err["http_status"] == 422
    assert err["message"] == "Request validation failed"
    assert "errors" in err["details"]
    assert err["trace_id"] == "trace-xyz"


def test_handle_http_exception_envelope() -> None:
    client = TestClient(_make_app_with_handlers())

    resp = client.get("/http-exc")

    assert resp.status_code == 404
    err = resp.json()["error"]
    assert err["code"] == "HTTP_ERROR"
    assert err["message"] == "not found"
    assert err["trace_id"] == "trace-xyz"


def test_handle_domain_error_envelope() -> None:
    client = TestClient(_make_app_with_handlers())

    resp = client.get("/domain")

    assert resp.status_code == 422
    err = resp.json()["error"]
    assert err["code"] == "KPI_AGGREGATION_ERROR"
    assert err["message"] == "ledger unavailable"
    assert err["details"] == {"metric_key": "capex"}


def test_handle_unhandled_exception_envelope() -> None:
    # Don't re-raise server exceptions; the 500 response is under test.
    client = TestClient(_make_app_with_handlers(), raise_server_exceptions=False)

    resp = client.get("/unhandled")

    assert resp.status_code == 500
    err = resp.json()["error"]
    assert err["code"] == "INTERNAL_ERROR"
    assert err["message"] == "Internal server error"
    assert err["trace_id"] == "trace-xyz"
