"""
Runtime middleware configuration as immutable snapshots.

The store owns the current `MiddlewareConfig`. `update()` merges a partial
payload into a copy, validates the result and swaps the reference; nothing is
mutated in place. A request reads `current()` once when it enters the
pipeline and keeps that snapshot, so a concurrent update can never hand it a
half-applied configuration.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping

from perfmock.domain.models import MiddlewareConfig
from perfmock.utils.logging import get_logger

log = get_logger(__name__)

_SECTIONS = ("auth", "latency", "errors")


class MiddlewareConfigStore:
    """Holder for the current middleware configuration snapshot."""

    def __init__(self, initial: MiddlewareConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._current = initial or MiddlewareConfig()

    def current(self) -> MiddlewareConfig:
        return self._current

    def update(self, changes: Mapping[str, Any]) -> MiddlewareConfig:
        """
        Apply a partial update, e.g. `{"latency": {"enabled": True, "maxMs": 800}}`.

        Unknown top-level sections are ignored. Section payloads are merged
        key by key over the current values (camelCase or snake_case).

        Raises
        ------
        ValueError
            If the merged configuration is invalid (pydantic.ValidationError is a
            ValueError); the current snapshot is kept.
        """
        with self._lock:
            merged: Dict[str, Any] = self._current.model_dump(by_alias=False)
            for section in _SECTIONS:
                patch = changes.get(section)
                if patch is None:
                    continue
                if not isinstance(patch, Mapping):
                    raise ValueError(f"'{section}' configuration must be an object")
                section_model = getattr(self._current, section)
                current_section = section_model.model_dump(by_alias=False)
                current_section.update(_normalise_keys(section_model, patch))
                merged[section] = current_section
            snapshot = MiddlewareConfig.model_validate(merged)
            self._current = snapshot

        log.info(
            "Middleware configuration updated",
            extra={"sections": [section for section in _SECTIONS if section in changes]},
        )
        return snapshot


def _normalise_keys(model: Any, patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase aliases in `patch` onto field names of `model`."""
    names_by_alias = {
        info.alias: name for name, info in type(model).model_fields.items() if info.alias
    }
    return {names_by_alias.get(key, key): value for key, value in patch.items()}


__all__ = ["MiddlewareConfigStore"]
