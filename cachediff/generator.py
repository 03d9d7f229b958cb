"""Emits the diff procedure for a resolved type descriptor."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import TypeDescriptor
from .diagnostics import DiagnosticAggregator
from .exceptions import UnresolvedReference
from .references import ReferenceResolver

logger = logging.getLogger(__name__)

ENTRY_FORMAT = "{} ({} to {})"
CUSTOM_NAME = "_custom"


class DiffGenerator:
    """
    Generates `diff(self, old) -> list[str]` for one record type.

    The procedure is built as a closure over the linked function references.
    `source()` renders the same procedure as Python text:

    - custom function output comes first, in the order it returns it
    - then one entry per changed active field, in declaration order:
      "{label} ({old} to {new})", each value passed through the field's
      display function and then `self.fmt_value`
    """

    def __init__(self, descriptor: TypeDescriptor):
        self.descriptor = descriptor

    def source(self) -> str:
        """Return the generated procedure source text."""
        lines = [
            "def diff(self, old):",
            "    differences = []",
        ]

        if self.descriptor.custom_fn is not None:
            lines.extend([
                f"    for difference in {CUSTOM_NAME}(old, self):",
                "        differences.append(str(difference))",
            ])

        for active in self.descriptor.fields:
            name = active.field_id
            display = _display_name(name)
            lines.extend([
                f"    if self.{name} != old.{name}:",
                f"        differences.append({ENTRY_FORMAT!r}.format(",
                f"            {active.label!r},",
                f"            self.fmt_value({display}(old.{name})),",
                f"            self.fmt_value({display}(self.{name})),",
                "        ))",
            ])

        lines.append("    return differences")
        return "\n".join(lines) + "\n"

    def namespace(self, resolver: ReferenceResolver) -> dict:
        """Link every function reference the procedure uses."""
        errors = DiagnosticAggregator(self.descriptor.type_id)
        references = []
        if self.descriptor.custom_fn is not None:
            references.append((CUSTOM_NAME, self.descriptor.custom_fn))
        for active in self.descriptor.fields:
            references.append((_display_name(active.field_id), active.format_ref))

        namespace = {}
        for name, ref in references:
            try:
                namespace[name] = resolver.resolve(ref)
            except UnresolvedReference as e:
                errors.add(e)

        errors.raise_if_errors()
        return namespace

    def build(self, resolver: Optional[ReferenceResolver] = None) -> Callable:
        """
        Build the procedure from the linked function references.

        The procedure behaves exactly as `source()` reads.

        Args:
            resolver: Resolves function references (defaults to builtins and
                importable modules only)

        Returns:
            The diff function, ready to be installed on the record type

        Raises:
            DiagnosticReport: one or more function references cannot be found
        """
        namespace = self.namespace(resolver or ReferenceResolver())
        custom = namespace.get(CUSTOM_NAME)
        comparisons = [
            (active.field_id, active.label, namespace[_display_name(active.field_id)])
            for active in self.descriptor.fields
        ]

        def diff(self, old):
            differences = []
            if custom is not None:
                for difference in custom(old, self):
                    differences.append(str(difference))

            for name, label, display in comparisons:
                previous = getattr(old, name)
                current = getattr(self, name)
                if current != previous:
                    differences.append(ENTRY_FORMAT.format(
                        label,
                        self.fmt_value(display(previous)),
                        self.fmt_value(display(current)),
                    ))
            return differences

        diff.__qualname__ = f"{self.descriptor.type_id}.diff"
        diff.__doc__ = (
            f"Differences between this {self.descriptor.type_id} and `old`; "
            "empty when the cache is still valid."
        )

        logger.debug(
            "Built diff for %s (%d fields)",
            self.descriptor.type_id,
            len(self.descriptor.fields)
        )
        return diff


def _display_name(field_id: str) -> str:
    return f"_display_{field_id}"
