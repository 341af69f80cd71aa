import csv
import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from perfmock import config
from perfmock.config import Settings, build_middleware_config, check_startup_config
from perfmock.errors import ConfigurationError
from perfmock.export import export_records
from perfmock.generation.engine import DataGenerator
from perfmock.server.app import create_app
from perfmock.server.envelope import utc_now_iso


def test_get_settings_defaults(monkeypatch):
    for name in ("PORT", "APP_ENV", "LATENCY_ENABLED", "ERROR_RATE", "DEFAULT_SEED"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.app_env == "development"
    assert settings.latency_enabled is False
    assert settings.error_rate == 0.1
    assert settings.default_seed == 42
    assert settings.max_page_size == 1000


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LATENCY_ENABLED", "true")
    monkeypatch.setenv("LATENCY_DISTRIBUTION", "exponential")
    settings = Settings(_env_file=None)
    assert settings.port == 8080
    assert settings.latency_enabled is True
    assert settings.latency_distribution == "exponential"


def test_build_middleware_config_from_settings():
    settings = Settings(
        _env_file=None,
        auth_enabled=True,
        api_key="k",
        latency_enabled=True,
        latency_min_ms=10,
        latency_max_ms=20,
        error_injection_enabled=True,
        error_rate=0.25,
    )
    snapshot = build_middleware_config(settings)
    assert snapshot.auth.enabled is True
    assert snapshot.auth.api_key == "k"
    assert snapshot.latency.min_ms == 10
    assert snapshot.latency.max_ms == 20
    assert snapshot.errors.error_rate == 0.25
    assert [error_type.type for error_type in snapshot.errors.error_types] == [
        "server_error",
        "timeout",
        "bad_request",
        "rate_limit",
        "unauthorized",
    ]


def test_startup_check_reports_errors_and_warnings():
    broken = Settings(_env_file=None, latency_min_ms=600, latency_max_ms=100, default_page_size=0)
    check = check_startup_config(broken)
    assert check.valid is False
    assert "Latency min cannot be greater than max" in check.errors
    assert len(check.errors) == 2

    production = Settings(
        _env_file=None, app_env="production", auth_enabled=True, log_level="DEBUG"
    )
    check = check_startup_config(production)
    assert check.valid is True
    assert len(check.warnings) == 2


def test_create_app_refuses_invalid_configuration():
    with pytest.raises(ConfigurationError) as excinfo:
        create_app(settings=Settings(_env_file=None, error_rate=1.5))
    assert excinfo.value.errors == ["Error injection rate must be between 0 and 1"]


def test_export_writes_csv(tmp_path: Path, generator: DataGenerator):
    csv_path = tmp_path / "records.csv"
    written = export_records(generator, csv_path, fmt="csv", batch_size=2)
    assert written == 5
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    # header + 5 rows = 6 lines
    assert len(rows) == 6
    assert rows[0] == ["id", "status"]
    assert rows[1][0] == generator.generate_record(0)["id"]


def test_export_writes_jsonl(tmp_path: Path, generator: DataGenerator):
    path = tmp_path / "nested" / "records.jsonl"
    written = export_records(generator, path, fmt="jsonl", batch_size=3)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert written == len(lines) == 5
    assert json.loads(lines[4]) == generator.generate_record(4)


def test_export_rejects_unknown_format(tmp_path: Path, generator: DataGenerator):
    with pytest.raises(ValueError):
        export_records(generator, tmp_path / "x.xml", fmt="xml")  # type: ignore[arg-type]


def test_envelope_timestamps_are_utc() -> None:
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    assert parsed.utcoffset() == timedelta(0)
