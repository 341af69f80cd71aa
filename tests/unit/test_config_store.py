from __future__ import annotations

import pytest

from perfmock.domain.models import MiddlewareConfig
from perfmock.injection.config_store import MiddlewareConfigStore


def test_update_merges_camel_case_patch() -> None:
    store = MiddlewareConfigStore()
    snapshot = store.update({"latency": {"enabled": True, "maxMs": 800, "distribution": "normal"}})

    assert snapshot.latency.enabled is True
    assert snapshot.latency.max_ms == 800
    assert snapshot.latency.min_ms == 100
    assert snapshot.latency.distribution == "normal"
    assert store.current() is snapshot


def test_update_accepts_snake_case_and_other_sections() -> None:
    store = MiddlewareConfigStore()
    snapshot = store.update(
        {
            "errors": {"enabled": True, "error_rate": 0.5},
            "auth": {"enabled": True, "apiKey": "k"},
        }
    )
    assert snapshot.errors.enabled is True
    assert snapshot.errors.error_rate == 0.5
    assert len(snapshot.errors.error_types) == 5
    assert snapshot.auth.api_key == "k"
    assert snapshot.auth.header_name == "X-API-Key"


def test_previous_snapshot_is_never_mutated() -> None:
    store = MiddlewareConfigStore()
    before = store.current()
    store.update({"latency": {"enabled": True}})
    assert before.latency.enabled is False
    assert store.current() is not before


def test_invalid_update_keeps_current_snapshot() -> None:
    store = MiddlewareConfigStore()
    before = store.current()

    with pytest.raises(ValueError):
        store.update({"latency": {"minMs": 900, "maxMs": 100}})
    with pytest.raises(ValueError):
        store.update({"errors": {"errorRate": 2}})
    with pytest.raises(ValueError):
        store.update({"latency": "fast"})

    assert store.current() is before


def test_unknown_sections_are_ignored() -> None:
    store = MiddlewareConfigStore()
    before = store.current()
    assert store.update({"cors": {"enabled": True}}) == before


def test_route_scoping() -> None:
    config = MiddlewareConfig.model_validate(
        {"latency": {"enabled": True, "applyToRoutes": ["/api/records"]}}
    )
    assert config.latency.applies_to("/api/records") is True
    assert config.latency.applies_to("/api/schema") is False
    assert config.latency.applies_to("/api/health") is False

    config = MiddlewareConfig.model_validate({"errors": {"excludeRoutes": ["/api/config"]}})
    assert config.errors.applies_to("/api/config/middleware") is False
    assert config.errors.applies_to("/api/records") is True
    assert config.errors.applies_to("/api/metrics") is False
