"""Collects configuration errors from every resolution step into one report."""

from __future__ import annotations

from typing import Optional, Union

from .models import Diagnostic
from .exceptions import ConfigurationError, DiagnosticReport


class DiagnosticAggregator:
    """
    Accumulates errors while a type is being resolved.

    Errors keep their insertion order. A nested report (from a step that can
    fail more than once) is flattened into its individual errors.
    """

    def __init__(self, type_name: Optional[str] = None):
        self.type_name = type_name
        self.errors: list[ConfigurationError] = []

    def add(self, error: Union[ConfigurationError, DiagnosticReport]):
        if isinstance(error, DiagnosticReport):
            self.errors.extend(error.errors)
        else:
            self.errors.append(error)

    def extend(self, errors):
        for error in errors:
            self.add(error)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def diagnostics(self) -> list[Diagnostic]:
        return self.report().diagnostics

    def report(self) -> DiagnosticReport:
        return DiagnosticReport(self.errors, self.type_name)

    def raise_if_errors(self):
        """Raise a single report when anything was collected."""
        if self.errors:
            raise self.report()
