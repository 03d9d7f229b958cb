"""Container resolution: a type's annotations and fields into a type descriptor."""

from __future__ import annotations

import logging
from typing import Optional

from .models import (
    ActiveField,
    AttributeKey,
    FunctionRef,
    IgnoredCustom,
    IgnoredOther,
    Location,
    RawDeclaration,
    RawField,
    Scope,
    TypeDescriptor,
)
from .config import CompilerConfig, DEFAULT_CONFIG
from .diagnostics import DiagnosticAggregator
from .exceptions import (
    ConfigurationError,
    DiagnosticReport,
    MissingCustomHook,
    NoComparableFields,
    UnsupportedShape,
)
from .fields import FieldResolver
from .grammar import AttributeParser
from .utils import attribute_lookup

logger = logging.getLogger(__name__)


class ContainerResolver:
    """
    Resolves a whole record type, enforcing the rules that span fields:

    1. The type must have named fields
    2. At most one type-level `custom` function
    3. Fields delegated to `custom` require the type to declare one
    4. At least one field must remain active

    Every problem found is rolled up into one DiagnosticReport.
    """

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.field_resolver = FieldResolver(self.config.namespace)

    def resolve(
        self,
        type_name: str,
        type_annotations: list[str],
        raw_fields: list[RawField],
        named: bool = True
    ) -> TypeDescriptor:
        """
        Resolve a record type.

        Args:
            type_name: Name of the record type
            type_annotations: Type-level annotation blocks
            raw_fields: Fields in declaration order
            named: Whether the type has named fields at all

        Returns:
            TypeDescriptor with active fields in declaration order

        Raises:
            DiagnosticReport: one or more configuration errors
        """
        errors = DiagnosticAggregator(type_name)

        if not named:
            errors.add(UnsupportedShape(self.config.macro_name, type_name))
            errors.raise_if_errors()

        custom_fn, custom_declared = self._resolve_type_annotations(
            type_name, type_annotations, errors
        )

        active: list[ActiveField] = []
        ignored = []
        field_failed = False
        for raw in raw_fields:
            owner = f"{type_name}.{raw.name}"
            try:
                annotations = AttributeParser(
                    Scope.FIELD, owner, self.config.namespace
                ).parse_all(raw.blocks)
                descriptor = self.field_resolver.resolve(
                    raw.name, raw.declared_type, annotations
                )
            except (ConfigurationError, DiagnosticReport) as e:
                errors.add(e)
                field_failed = True
                continue

            if isinstance(descriptor, ActiveField):
                active.append(descriptor)
                continue

            ignored.append(descriptor)
            if isinstance(descriptor, IgnoredCustom) and not custom_declared:
                errors.add(MissingCustomHook(
                    self.config.namespace, raw.name, type_name, Location(owner)
                ))

        if not active and not field_failed:
            errors.add(NoComparableFields(
                self.config.namespace, self.config.macro_name, type_name
            ))

        errors.raise_if_errors()

        logger.debug(
            "Resolved %s: %d active, %d ignored, custom=%s",
            type_name,
            len(active),
            len(ignored),
            custom_fn.path if custom_fn else None
        )
        return TypeDescriptor(
            type_id=type_name,
            custom_fn=custom_fn,
            fields=active,
            ignored=ignored,
        )

    def resolve_declaration(self, declaration: RawDeclaration) -> TypeDescriptor:
        """Resolve a RawDeclaration built by the host binding."""
        return self.resolve(
            declaration.type_name,
            declaration.blocks,
            declaration.fields,
            named=declaration.named
        )

    def _resolve_type_annotations(
        self,
        type_name: str,
        blocks: list[str],
        errors: DiagnosticAggregator
    ) -> tuple[Optional[FunctionRef], bool]:
        """
        Extract the type-level custom function.

        Returns:
            Tuple of (custom_fn, custom_declared). A repeated `custom` yields
            no function but still counts as declared, so fields delegated to it
            are not reported a second time.
        """
        parser = AttributeParser(Scope.TYPE, type_name, self.config.namespace)
        try:
            annotations = parser.parse_all(blocks)
        except ConfigurationError as e:
            errors.add(e)
            return None, False

        lookup, duplicates = attribute_lookup(annotations, self.config.namespace)
        custom = lookup.get(AttributeKey.CUSTOM)
        if duplicates:
            errors.extend(duplicates)
            return None, custom is not None

        if custom is None:
            return None, False
        return custom.value, True


def resolve(
    type_name: str,
    type_annotations: list[str],
    raw_fields: list[RawField],
    config: Optional[CompilerConfig] = None
) -> TypeDescriptor:
    """Convenience function to resolve a type with the given config."""
    return ContainerResolver(config).resolve(type_name, type_annotations, raw_fields)
