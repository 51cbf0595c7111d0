"""Tests for the Prometheus metrics middleware."""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth


def _count(endpoint: str, method: str, status_code: str) -> float:
    value = REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": method, "endpoint": endpoint, "status_code": status_code},
    )
    return value or 0.0


def test_requests_labelled_by_route_template(client: TestClient, token: str) -> None:
    before = _count("/v1/courses/{slug}", "GET", "200")

    client.get("/v1/courses/intro-to-react", headers=auth(token))
    client.get("/v1/courses/advanced-typescript", headers=auth(token))

    assert _count("/v1/courses/{slug}", "GET", "200") == before + 2


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    before = _count("unmatched", "GET", "404")
    client.get("/no/such/path")
    client.get("/another/missing/path")
    assert _count("unmatched", "GET", "404") == before + 2


def test_metrics_scrape_not_counted(client: TestClient) -> None:
    before = _count("/metrics", "GET", "200")
    client.get("/metrics")
    assert _count("/metrics", "GET", "200") == before


def test_store_actions_counted(client: TestClient, token: str) -> None:
    def _actions() -> float:
        return REGISTRY.get_sample_value(
            "store_actions_total", {"store": "enrollment", "action": "add_to_favorites"}
        ) or 0.0

    before = _actions()
    client.put("/v1/favorites/intro-to-react", headers=auth(token))
    assert _actions() == before + 1
