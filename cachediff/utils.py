"""Utility functions for the cachediff compiler."""

from __future__ import annotations

import pathlib
import typing
from typing import Any

from .models import Annotation, AttributeKey
from .exceptions import DuplicateAttribute


PATH_TYPE_NAMES = frozenset(
    name for name in dir(pathlib)
    if isinstance(getattr(pathlib, name), type)
    and issubclass(getattr(pathlib, name), pathlib.PurePath)
)


def default_label(field_name: str) -> str:
    """Human readable label for a field: underscores become spaces."""
    return field_name.replace("_", " ")


def is_path_type(declared_type: Any) -> bool:
    """
    Check whether a declared field type is a filesystem path type.

    Evaluated types are checked by subclass; unevaluated string annotations
    are checked by the last dotted segment, with no subscript allowed.
    """
    if isinstance(declared_type, type):
        return issubclass(declared_type, pathlib.PurePath)

    if isinstance(declared_type, typing.ForwardRef):
        declared_type = declared_type.__forward_arg__

    if isinstance(declared_type, str):
        text = declared_type.strip()
        if "[" in text or "|" in text:
            return False
        return text.rsplit(".", 1)[-1] in PATH_TYPE_NAMES

    return False


def attribute_lookup(
    annotations: list[Annotation],
    namespace: str = "cache_diff"
) -> tuple[dict[AttributeKey, Annotation], list[DuplicateAttribute]]:
    """
    Index annotations by key, reporting every repeated key.

    Each repeat is linked to the occurrence just before it, so three `custom`
    entries produce two duplicate errors.

    Returns:
        Tuple of (lookup, duplicate_errors)
    """
    seen: dict[AttributeKey, Annotation] = {}
    errors = []

    for annotation in annotations:
        prior = seen.get(annotation.key)
        if prior is not None:
            errors.append(DuplicateAttribute(
                namespace,
                annotation.key.value,
                annotation.location,
                prior.location
            ))
        seen[annotation.key] = annotation

    return seen, errors


def normalize_blocks(raw: Any) -> list[str]:
    """Accept a single block string or a sequence of them."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return [str(block) for block in raw]
