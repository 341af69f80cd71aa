"""
Error selector for fault injection.

Per request: gate on `error_rate`, then pick one configured `ErrorType` by
normalised weight. The selected type is the product, not a failure: the
server renders it with the configured status code and message.
"""

from __future__ import annotations

import random
import threading
from collections import Counter
from typing import Any, Dict, Optional

from perfmock.domain.models import ErrorInjectionConfig, ErrorType


def choose_weighted(config: ErrorInjectionConfig, rng: random.Random) -> Optional[ErrorType]:
    """
    Weighted choice over `config.error_types` by `probability`.

    Returns None when the weights sum to zero. Zero-weight types are never
    chosen, whatever their position.
    """
    total = sum(error_type.probability for error_type in config.error_types)
    if total <= 0:
        return None

    remaining = rng.random() * total
    chosen: Optional[ErrorType] = None
    for error_type in config.error_types:
        if error_type.probability <= 0:
            continue
        chosen = error_type
        remaining -= error_type.probability
        if remaining <= 0:
            return error_type
    # Float rounding can leave a sliver; it belongs to the last weighted type.
    return chosen


class ErrorSelector:
    """
    Decide per request whether to fail and with which category.

    Keeps advisory counters (requests seen, errors injected, per-type counts)
    for `/api/middleware/errors/stats`.

    Parameters
    ----------
    rng : random.Random | None
        Random source. Defaults to a fresh, OS-seeded `random.Random`.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._total_requests = 0
        self._error_count = 0
        self._by_type: Counter[str] = Counter()

    def select(self, config: ErrorInjectionConfig) -> Optional[ErrorType]:
        with self._lock:
            self._total_requests += 1

        if not config.enabled or config.error_rate <= 0:
            return None
        if self._rng.random() > config.error_rate:
            return None

        error_type = choose_weighted(config, self._rng)
        if error_type is None:
            return None

        with self._lock:
            self._error_count += 1
            self._by_type[error_type.type] += 1
        return error_type

    def reset_stats(self) -> None:
        with self._lock:
            self._total_requests = 0
            self._error_count = 0
            self._by_type.clear()

    def get_stats(self, config: ErrorInjectionConfig) -> Dict[str, Any]:
        with self._lock:
            total, errors, by_type = self._total_requests, self._error_count, dict(self._by_type)
        return {
            "enabled": config.enabled,
            "configuredErrorRate": config.error_rate,
            "actualErrorRate": errors / total if total else 0.0,
            "totalRequests": total,
            "errorCount": errors,
            "errorsByType": by_type,
            "errorTypes": [
                {
                    "type": error_type.type,
                    "statusCode": error_type.status_code,
                    "probability": error_type.probability,
                }
                for error_type in config.error_types
            ],
        }


__all__ = ["ErrorSelector", "choose_weighted"]
