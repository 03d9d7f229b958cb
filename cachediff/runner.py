"""Golden-output runner: checks diff entries against recorded expectations."""

from __future__ import annotations

import dataclasses
import importlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from .declaration import field_types
from .engine import is_cache_diff
from .exceptions import CacheDiffError
from .utils import is_path_type

logger = logging.getLogger(__name__)


def load_target(target: str) -> type:
    """
    Import a decorated class from a 'module:Class' string.

    Raises:
        ValueError: the target is malformed or not decorated with @cache_diff
    """
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"Target must look like 'module:Class', got: {target}")

    obj: Any = importlib.import_module(module_name)
    for part in qualname.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise ValueError(f"'{qualname}' not found in module '{module_name}'")

    if not is_cache_diff(obj):
        raise ValueError(f"'{target}' is not decorated with @cache_diff")
    return obj


def load_document(path: str | Path) -> Any:
    """Load a YAML or JSON document."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r') as f:
        content = f.read()

    # JSON is valid YAML
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path}: {e}")


def build_instance(cls: type, data: dict) -> Any:
    """
    Instantiate a record type from plain data.

    String values for path-like fields are converted to `pathlib.Path`.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping of field values for {cls.__name__}")

    hints = field_types(cls)
    values = {}
    for f in dataclasses.fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        declared = hints.get(f.name, f.type)
        if isinstance(value, str) and is_path_type(declared):
            value = Path(value)
        values[f.name] = value
    return cls(**values)


@dataclass
class CaseResult:
    """Result of a single golden case."""
    name: str
    target: str
    passed: bool
    expected: list[str] = field(default_factory=list)
    actual: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "target": self.target,
            "passed": self.passed,
            "expected": self.expected,
            "actual": self.actual,
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class GoldenReport:
    """Report across all golden cases."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    cases: list[CaseResult] = field(default_factory=list)
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

    def to_dict(self) -> dict:
        pass_rate = f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"
        return {
            "timestamp": self.timestamp,
            "summary": {
                "total_cases": self.total,
                "passed": self.passed,
                "failed": self.failed,
                "pass_rate": pass_rate
            },
            "cases": [c.to_dict() for c in self.cases]
        }

    def print_summary(self):
        pass_rate = f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"
        print(f"\nGolden Results: {self.passed}/{self.total} passed ({pass_rate})")
        for case in self.cases:
            if case.passed:
                continue
            print(f"  FAIL: {case.name}")
            if case.error:
                print(f"    error: {case.error}")
                continue
            print(f"    expected: {case.expected}")
            print(f"    actual:   {case.actual}")


class GoldenRunner:
    """
    Runs golden cases from a YAML/JSON file:

        cases:
          - name: version bump
            type: example:Metadata
            previous: {version: "3.3.0"}
            current: {version: "3.4.0"}
            expected:
              - "version (`3.3.0` to `3.4.0`)"

    Each case passes when `current.diff(previous)` equals `expected` exactly.
    """

    def __init__(self, cases_path: str | Path):
        self.cases_path = Path(cases_path)

    def load_cases(self) -> list[dict]:
        document = load_document(self.cases_path)
        if not isinstance(document, dict) or not isinstance(document.get("cases"), list):
            raise ValueError(f"{self.cases_path} must contain a 'cases' list")
        return document["cases"]

    def run_case(self, case: dict, index: int) -> CaseResult:
        """Run a single golden case."""
        name = case.get("name", f"case {index + 1}")
        target = case.get("type", "")
        expected = [str(entry) for entry in case.get("expected") or []]

        try:
            cls = load_target(target)
            previous = build_instance(cls, case.get("previous") or {})
            current = build_instance(cls, case.get("current") or {})
            actual = list(current.diff(previous))
        except (CacheDiffError, ValueError, TypeError, ImportError) as e:
            logger.debug("Golden case %s errored: %s", name, e)
            return CaseResult(name, target, False, expected, error=str(e))

        return CaseResult(name, target, actual == expected, expected, actual)

    def run(self, print_report: bool = True) -> GoldenReport:
        """Run all cases in the file."""
        report = GoldenReport()

        for index, case in enumerate(self.load_cases()):
            result = self.run_case(case, index)
            report.cases.append(result)
            report.total += 1

            if result.passed:
                report.passed += 1
                if print_report:
                    print(f"PASS: {result.name}")
            else:
                report.failed += 1
                if print_report:
                    print(f"FAIL: {result.name}")

        if print_report:
            report.print_summary()

        return report


def run_golden(cases_path: str, print_report: bool = True) -> GoldenReport:
    """Run a golden case file."""
    return GoldenRunner(cases_path).run(print_report)
