"""
Injection package for perfmock.

Request-level fault simulation: latency sampling, weighted error selection and
the snapshot-based runtime configuration store both read from.
"""

from perfmock.injection.config_store import MiddlewareConfigStore
from perfmock.injection.errors import ErrorSelector, choose_weighted
from perfmock.injection.latency import LatencySampler, available_distributions

__all__ = [
    "ErrorSelector",
    "LatencySampler",
    "MiddlewareConfigStore",
    "available_distributions",
    "choose_weighted",
]
