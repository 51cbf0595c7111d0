"""Tests for the request context middleware."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from learnhub.core.logging import _JsonFormatter


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/dashboard")  # No auth token -> 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_completion_line_logged(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="learnhub.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "req-42"})

    records = [r for r in caplog.records if r.name == "learnhub.middleware.request_context"]
    assert len(records) == 1
    record = records[0]
    assert "GET /health -> 200" in record.getMessage()
    assert record.request_id == "req-42"  # type: ignore[attr-defined]
    assert record.status_code == 200  # type: ignore[attr-defined]


def test_completion_line_as_json(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="learnhub.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "req-7"})

    [record] = [r for r in caplog.records if r.name == "learnhub.middleware.request_context"]
    line = _JsonFormatter().format(record)
    assert '"request_id": "req-7"' in line
    assert '"path": "/health"' in line
