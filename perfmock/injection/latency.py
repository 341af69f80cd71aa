"""
Latency sampler for fault injection.

Unlike the record generator this path is intentionally non-deterministic: it
models a degraded backend at runtime, not a reproducible fixture. The random
source is injectable so tests can pin it.

Usage:
    from perfmock.injection.latency import LatencySampler

    sampler = LatencySampler()
    delay_ms = sampler.sample(LatencyConfig(min_ms=100, max_ms=500, distribution="normal"))
    await asyncio.sleep(delay_ms / 1000)
"""

from __future__ import annotations

import math
import random
from typing import Callable, Dict, List, Optional

from perfmock.domain.models import LatencyConfig

DistributionFn = Callable[[random.Random, float, float], float]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _uniform(rng: random.Random, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


def _normal(rng: random.Random, low: float, high: float) -> float:
    """Box-Muller around the midpoint; sd = range / 6 so ~99.7% lands in range."""
    mean = (low + high) / 2
    std_dev = (high - low) / 6
    u1 = 1.0 - rng.random()  # (0, 1], keeps log() finite
    u2 = rng.random()
    z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return _clamp(mean + z0 * std_dev, low, high)


def _exponential(rng: random.Random, low: float, high: float) -> float:
    """Rate 3 / range, shifted to start at `low`, clamped to `high`."""
    rate = 3.0 / (high - low)
    u = 1.0 - rng.random()
    return _clamp(-math.log(u) / rate + low, low, high)


def _distributions() -> Dict[str, DistributionFn]:
    """Registry of supported latency distributions."""
    return {
        "uniform": _uniform,
        "normal": _normal,
        "exponential": _exponential,
    }


def available_distributions() -> List[str]:
    return sorted(_distributions().keys())


class LatencySampler:
    """
    Draw one injected delay, in milliseconds, from a `LatencyConfig`.

    Parameters
    ----------
    rng : random.Random | None
        Random source. Defaults to a fresh, OS-seeded `random.Random`.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def sample(self, config: LatencyConfig) -> float:
        low, high = float(config.min_ms), float(config.max_ms)
        if high <= low:
            return low
        distributions = _distributions()
        if config.distribution not in distributions:
            raise ValueError(
                f"Unknown latency distribution '{config.distribution}'. "
                f"Available: {', '.join(distributions)}"
            )
        return distributions[config.distribution](self._rng, low, high)

    @staticmethod
    def describe(config: LatencyConfig) -> Dict[str, object]:
        """Summary exposed on `/api/middleware/latency/stats`."""
        return {
            "enabled": config.enabled,
            "distribution": config.distribution,
            "minMs": config.min_ms,
            "maxMs": config.max_ms,
            "meanMs": (config.min_ms + config.max_ms) / 2,
        }


__all__ = ["LatencySampler", "available_distributions"]
