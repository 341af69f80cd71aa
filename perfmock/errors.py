"""
Exception types raised at perfmock's construction boundaries.

The generation hot path never raises these; they surface when a schema or a
configuration is handed to a component (engine construction, reset, schema
update, app start-up) so bad input is rejected before it reaches synthesis.
"""

from __future__ import annotations

from typing import List, Optional

from perfmock.domain.models import SchemaIssue


class PerfMockError(Exception):
    """Base class for all perfmock errors."""


class SchemaValidationError(PerfMockError):
    """
    A schema failed validation.

    Carries the full structured issue list so callers can render every
    problem at once rather than the first one.
    """

    def __init__(self, issues: List[SchemaIssue], message: Optional[str] = None) -> None:
        self.issues = list(issues)
        summary = "; ".join(issue.message for issue in self.issues)
        super().__init__(message or f"Schema validation failed: {summary}")


class ConfigurationError(PerfMockError):
    """Start-up or runtime configuration is unusable."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Configuration validation failed: {', '.join(self.errors)}")


__all__ = ["ConfigurationError", "PerfMockError", "SchemaValidationError"]
