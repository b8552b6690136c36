"""
Tests for the app surface and small shared building blocks.
"""

import logging

import pytest
import structlog
from httpx import AsyncClient

from celebrate.core.logging import build_renderer, setup_logging
from celebrate.db.types import JSONList
from celebrate.schemas.venue import VenueSearchParams
from celebrate.services.cache_service import SEARCH_KEY_PREFIX, make_search_key


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_api_health(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-abc"})
    assert response.headers["X-Request-ID"] == "req-abc"
    assert response.headers["X-Response-Time"].endswith("ms")


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "celebrate_booking_attempts" in response.text


@pytest.mark.asyncio
async def test_unknown_route_uses_error_body(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert "error" in response.json()


def test_search_key_normalizes_filters():
    a = VenueSearchParams(city=" London ", q="Hall", page=2)
    b = VenueSearchParams(q="hall", city="london", page=2)
    assert make_search_key(a) == make_search_key(b)
    assert make_search_key(a).startswith(SEARCH_KEY_PREFIX)
    assert make_search_key(a) != make_search_key(VenueSearchParams(city="london", q="hall", page=3))


def test_json_list_column_tolerates_bad_values():
    column = JSONList()
    assert column.process_bind_param(None, None) == "[]"
    assert column.process_bind_param(["wifi", "bar"], None) == '["wifi", "bar"]'
    assert column.process_result_value('["wifi"]', None) == ["wifi"]
    assert column.process_result_value("not json", None) == []
    assert column.process_result_value('{"a": 1}', None) == []
    assert column.process_result_value(None, None) == []


def test_setup_logging_is_idempotent():
    setup_logging()
    setup_logging()
    handlers = [h for h in logging.getLogger().handlers if h.get_name() == "celebrate"]
    assert len(handlers) == 1


def test_production_logs_render_json():
    renderer = build_renderer("production")
    assert isinstance(renderer[-1], structlog.processors.JSONRenderer)
    assert isinstance(build_renderer("development")[-1], structlog.dev.ConsoleRenderer)
