from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from perfmock import main as cli
from perfmock.client import CrawlSummary, PerfMockClientError
from perfmock.config import Settings

runner = CliRunner()


def test_info_prints_effective_settings() -> None:
    result = runner.invoke(cli.app, ["info"])
    assert result.exit_code == 0
    assert "records=" in result.output
    assert "latency=" in result.output


def test_preview_renders_table() -> None:
    result = runner.invoke(cli.app, ["preview", "--limit", "3", "--seed", "7", "--total", "50"])
    assert result.exit_code == 0
    assert "Generated Records (0..2)" in result.output


def test_export_jsonl(tmp_path: Path) -> None:
    output = tmp_path / "records.jsonl"
    result = runner.invoke(
        cli.app,
        ["export", str(output), "--rows", "25", "--seed", "7", "--batch-size", "10", "--format", "jsonl"],
    )
    assert result.exit_code == 0, result.output
    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 25
    assert {"id", "userId", "email", "status"} <= set(json.loads(lines[0]))


def test_export_rejects_unknown_format(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["export", str(tmp_path / "x.xml"), "--format", "xml"])
    assert result.exit_code == 2


def test_latency_summarises_each_distribution() -> None:
    result = runner.invoke(
        cli.app, ["latency", "--samples", "500", "--seed", "3", "--min-ms", "10", "--max-ms", "20"]
    )
    assert result.exit_code == 0
    for name in ("uniform", "normal", "exponential"):
        assert name in result.output


def test_latency_rejects_inverted_bounds() -> None:
    result = runner.invoke(cli.app, ["latency", "--min-ms", "50", "--max-ms", "10"])
    assert result.exit_code == 2


class _FakeClient:
    def __init__(self, summary: CrawlSummary | None = None, error: Exception | None = None) -> None:
        self.summary = summary
        self.error = error

    def __enter__(self) -> "_FakeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def crawl(self, limit: int) -> CrawlSummary:
        if self.error is not None:
            raise self.error
        assert self.summary is not None
        return self.summary


def test_crawl_reports_complete_run(monkeypatch) -> None:
    summary = CrawlSummary(total_count=10, records=10, unique_ids=10, pages=2)
    monkeypatch.setattr(cli, "PerfMockClient", lambda *args, **kwargs: _FakeClient(summary))
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)

    result = runner.invoke(cli.app, ["crawl", "http://mock.local"])

    assert result.exit_code == 0
    assert "complete" in result.output


def test_crawl_fails_on_client_error(monkeypatch) -> None:
    error = PerfMockClientError("GET /api/records failed", status_code=503)
    monkeypatch.setattr(cli, "PerfMockClient", lambda *args, **kwargs: _FakeClient(error=error))
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)

    result = runner.invoke(cli.app, ["crawl", "http://mock.local"])

    assert result.exit_code == 1
    assert "Crawl failed" in result.output


def _patch_serve(monkeypatch, settings: Settings) -> list:
    calls: list = []
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    return calls


def test_serve_refuses_invalid_configuration(monkeypatch) -> None:
    calls = _patch_serve(monkeypatch, Settings(app_env="test", latency_min_ms=900.0, latency_max_ms=100.0))

    result = runner.invoke(cli.app, ["serve", "--port", "70000"])

    assert result.exit_code == 1
    assert "Server port must be between 1 and 65535" in result.output
    assert "Latency min cannot be greater than max" in result.output
    assert calls == []


def test_serve_starts_app_factory(monkeypatch) -> None:
    calls = _patch_serve(monkeypatch, Settings(app_env="test"))

    result = runner.invoke(cli.app, ["serve", "--host", "127.0.0.1", "--port", "8123"])

    assert result.exit_code == 0, result.output
    (args, kwargs), = calls
    assert args == ("perfmock.server.app:create_app",)
    assert kwargs["factory"] is True
    assert (kwargs["host"], kwargs["port"]) == ("127.0.0.1", 8123)
