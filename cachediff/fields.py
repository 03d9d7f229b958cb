"""Field resolution: raw annotations plus declared type into a field descriptor."""

from __future__ import annotations

from typing import Any

from .models import (
    ActiveField,
    Annotation,
    AttributeKey,
    CUSTOM_REASON,
    FieldDescriptor,
    FunctionRef,
    IgnoredCustom,
    IgnoredOther,
)
from .exceptions import ConflictingAttributes, DiagnosticReport
from .utils import attribute_lookup, default_label, is_path_type


IDENTITY_REF = FunctionRef("cachediff.references.identity")
PATH_DISPLAY_REF = FunctionRef("os.fspath")


class FieldResolver:
    """
    Turns one field's annotations into a normalized descriptor.

    Rules, in order:
    - Repeated keys are errors (every repeat is reported)
    - `ignore` excludes the field; it cannot be combined with other keys
    - Otherwise the field is active, with label and display defaults applied
    """

    def __init__(self, namespace: str = "cache_diff"):
        self.namespace = namespace

    def resolve(
        self,
        field_name: str,
        declared_type: Any,
        annotations: list[Annotation]
    ) -> FieldDescriptor:
        """
        Resolve a field.

        Args:
            field_name: Name of the field as declared
            declared_type: The field's type (evaluated or string annotation)
            annotations: Parsed annotations for the field

        Returns:
            ActiveField, IgnoredCustom or IgnoredOther

        Raises:
            DuplicateAttribute: a key is repeated once
            DiagnosticReport: several keys are repeated
            ConflictingAttributes: `ignore` with `rename` or `display`
        """
        lookup, duplicates = attribute_lookup(annotations, self.namespace)
        if len(duplicates) == 1:
            raise duplicates[0]
        if duplicates:
            raise DiagnosticReport(duplicates)

        ignore = lookup.get(AttributeKey.IGNORE)
        rename = lookup.get(AttributeKey.RENAME)
        display = lookup.get(AttributeKey.DISPLAY)

        if ignore is not None:
            if rename is not None or display is not None:
                raise ConflictingAttributes(self.namespace, field_name, ignore.location)
            if ignore.value == CUSTOM_REASON:
                return IgnoredCustom(field_name)
            return IgnoredOther(field_name, ignore.value)

        label = rename.value if rename is not None else default_label(field_name)

        if display is not None:
            format_ref = display.value
        elif is_path_type(declared_type):
            format_ref = PATH_DISPLAY_REF
        else:
            format_ref = IDENTITY_REF

        return ActiveField(label=label, format_ref=format_ref, field_id=field_name)
