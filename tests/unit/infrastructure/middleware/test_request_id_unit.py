# tests/unit/infrastructure/middleware/test_request_id_unit.py
"""Unit tests for RequestIdMiddleware behavior and header rules."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from turbodash_kpi.infrastructure.logging.logger import get_request_id
from turbodash_kpi.infrastructure.middleware.request_id import (
    _SAFE_RE,
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
)


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/id")
    async def get_id(request: Request) -> dict[str, str | None]:
        return {
            "rid": getattr(request.state, "request_id", None),
            "ctx": get_request_id(),
        }

    return app


def test_middleware_generates_id_and_sets_state_and_header() -> None:
    client = TestClient(_app())

    r = client.get("/id")

    assert r.status_code == 200
    rid = r.json()["rid"]
    assert r.headers.get(REQUEST_ID_HEADER) == rid
    assert _SAFE_RE.match(rid)
    # Logging context sees the same id.
    assert r.json()["ctx"] == rid


def test_middleware_uses_valid_incoming_and_rejects_invalid() -> None:
    client = TestClient(_app())

    valid = "abc-123_456:@Z"
    r1 = client.get("/id", headers={REQUEST_ID_HEADER: valid})
    assert r1.json()["rid"] == valid
    assert r1.headers.get(REQUEST_ID_HEADER) == valid

    invalid = "bad id with space"
    r2 = client.get("/id", headers={REQUEST_ID_HEADER: invalid})
    generated = r2.headers.get(REQUEST_ID_HEADER)
    assert generated and generated != invalid
    assert _SAFE_RE.match(generated)

    too_long = "x" * 129
    r3 = client.get("/id", headers={REQUEST_ID_HEADER: too_long})
    assert r3.headers.get(REQUEST_ID_HEADER) != too_long
