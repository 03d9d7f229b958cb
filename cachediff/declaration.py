"""Reads a decorated class into a raw declaration for the resolvers."""

from __future__ import annotations

import dataclasses
import enum
import typing
from typing import Any, Optional

from .models import RawDeclaration, RawField
from .utils import normalize_blocks


def has_named_fields(cls: Any) -> bool:
    """Only dataclasses have named fields; enums and tuples do not."""
    if not isinstance(cls, type):
        return False
    if issubclass(cls, (enum.Enum, tuple)):
        return False
    return dataclasses.is_dataclass(cls)


def field_types(cls: type, localns: Optional[dict] = None) -> dict[str, Any]:
    """
    Evaluated field types, or an empty mapping when hints cannot be evaluated.

    Callers fall back to the raw annotation for missing entries.
    """
    try:
        return typing.get_type_hints(cls, localns=localns)
    except (NameError, TypeError, AttributeError):
        return {}


def declaration_from_class(
    cls: type,
    blocks: list[str],
    namespace: str = "cache_diff",
    localns: Optional[dict] = None
) -> RawDeclaration:
    """
    Build a RawDeclaration from a class.

    Args:
        cls: The record type
        blocks: Type-level annotation blocks given to the decorator
        namespace: Field metadata key holding field annotation blocks
        localns: Names visible where the class was declared

    Returns:
        RawDeclaration with fields in declaration order
    """
    type_name = cls.__name__ if isinstance(cls, type) else type(cls).__name__
    if not has_named_fields(cls):
        return RawDeclaration(type_name=type_name, blocks=list(blocks), named=False)

    hints = field_types(cls, localns)
    fields = [
        RawField(
            name=f.name,
            declared_type=hints.get(f.name, f.type),
            blocks=normalize_blocks(f.metadata.get(namespace)),
        )
        for f in dataclasses.fields(cls)
    ]
    return RawDeclaration(type_name=type_name, blocks=list(blocks), fields=fields)
