"""
Health and runtime metrics.

`RequestMetrics` is fed once per request by the access-log middleware;
`HealthMonitor` combines it with process memory from psutil into the payloads
served on `/api/health`, `/api/health/detailed` and `/api/metrics`.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Tuple

import psutil

from perfmock import __version__
from perfmock.server.envelope import utc_now_iso

MEMORY_UNHEALTHY_PERCENT = 90.0
SLOW_RESPONSE_MS = 1000.0


class RequestMetrics:
    """Running request counters; 4xx/5xx responses count as errors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._count = 0
        self._errors = 0
        self._total_ms = 0.0

    def record(self, duration_ms: float, status_code: int) -> None:
        with self._lock:
            self._count += 1
            self._total_ms += duration_ms
            if status_code >= 400:
                self._errors += 1

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            count, errors, total_ms = self._count, self._errors, self._total_ms
        elapsed = max(time.monotonic() - self._started, 1e-9)
        return {
            "requestCount": count,
            "averageResponseTime": round(total_ms / count, 3) if count else 0.0,
            "errorRate": errors / count if count else 0.0,
            "throughput": round(count / elapsed, 3),
        }


class HealthMonitor:
    """
    Build health payloads for the current process.

    Parameters
    ----------
    metrics : RequestMetrics
        Counters shared with the request pipeline.
    """

    def __init__(self, metrics: RequestMetrics) -> None:
        self.metrics = metrics
        self._process = psutil.Process()
        self._start_time = time.time()

    @property
    def uptime_ms(self) -> int:
        return int((time.time() - self._start_time) * 1000)

    def memory_usage(self) -> Dict[str, float]:
        info = self._process.memory_info()
        return {
            "rss": info.rss,
            "vms": info.vms,
            "percent": round(self._process.memory_percent(), 2),
        }

    def performance_metrics(self) -> Dict[str, Any]:
        return {
            **self.metrics.snapshot(),
            "memoryUsage": self.memory_usage(),
            "timestamp": utc_now_iso(),
        }

    def health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "uptime": self.uptime_ms,
            "version": __version__,
            "metrics": self.performance_metrics(),
        }

    def detailed(self) -> Tuple[Dict[str, Any], bool]:
        """
        Run the individual checks.

        Returns the payload and whether the service should answer 200. A
        degraded check is reported but does not fail the probe.
        """
        metrics = self.performance_metrics()
        memory = metrics["memoryUsage"]
        uptime = self.uptime_ms
        checks = {
            "memory": {
                "status": (
                    "healthy" if memory["percent"] < MEMORY_UNHEALTHY_PERCENT else "unhealthy"
                ),
                "details": {
                    "percent": memory["percent"],
                    "rssMB": round(memory["rss"] / (1024 * 1024), 2),
                },
            },
            "uptime": {
                "status": "healthy",
                "details": {"uptimeMs": uptime, "uptimeMinutes": round(uptime / 60_000, 2)},
            },
            "performance": {
                "status": (
                    "healthy"
                    if metrics["averageResponseTime"] < SLOW_RESPONSE_MS
                    else "degraded"
                ),
                "details": {
                    "averageResponseTimeMs": metrics["averageResponseTime"],
                    "errorRate": metrics["errorRate"],
                    "throughput": metrics["throughput"],
                },
            },
        }

        statuses = {check["status"] for check in checks.values()}
        if "unhealthy" in statuses:
            status = "unhealthy"
        elif "degraded" in statuses:
            status = "degraded"
        else:
            status = "healthy"

        payload = {
            "status": status,
            "uptime": uptime,
            "version": __version__,
            "checks": checks,
            "metrics": metrics,
        }
        return payload, status != "unhealthy"


__all__ = ["HealthMonitor", "RequestMetrics"]
