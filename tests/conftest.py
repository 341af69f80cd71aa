"""
Pytest configuration for perfmock.

Provides fixtures for:
- The small two-field schema used by most generator tests
- A pinned timestamp anchor so iso8601 output is reproducible
- Settings with fault injection off and a short timeout delay
- A FastAPI app/TestClient wired with seeded randomness
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from perfmock.config import Settings, default_schema
from perfmock.generation.engine import DataGenerator
from perfmock.injection.errors import ErrorSelector
from perfmock.injection.latency import LatencySampler
from perfmock.server.app import create_app

SCENARIO_SEED = 42
SCENARIO_TOTAL = 5
TEST_API_KEY = "secret-test-key"


@pytest.fixture
def anchor() -> datetime:
    return datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def status_schema() -> Dict[str, Any]:
    return {
        "id": {"type": "uuid", "required": True},
        "status": {
            "type": "enum",
            "required": True,
            "constraints": {"enum": ["active", "inactive"]},
        },
    }


@pytest.fixture
def generator(status_schema: Dict[str, Any], anchor: datetime) -> DataGenerator:
    return DataGenerator(
        total_records=SCENARIO_TOTAL, schema=status_schema, seed=SCENARIO_SEED, anchor=anchor
    )


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Built by field name so the developer's environment and `.env` cannot
    switch fault injection on underneath the tests.
    """
    return Settings(
        app_env="test",
        log_level="DEBUG",
        auth_enabled=False,
        api_key=TEST_API_KEY,
        latency_enabled=False,
        error_injection_enabled=False,
        timeout_delay_ms=5.0,
        default_total_records=250,
        default_seed=SCENARIO_SEED,
        default_page_size=100,
        max_page_size=1000,
    )


@pytest.fixture
def app(test_settings: Settings, anchor: datetime):
    return create_app(
        settings=test_settings,
        generator=DataGenerator(
            total_records=test_settings.default_total_records,
            schema=default_schema(),
            seed=test_settings.default_seed,
            anchor=anchor,
        ),
        latency_sampler=LatencySampler(random.Random(1)),
        error_selector=ErrorSelector(random.Random(2)),
    )


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
