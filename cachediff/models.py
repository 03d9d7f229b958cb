"""Data models for the cachediff compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ValueStyle(Enum):
    PLAIN = "plain"
    ANSI = "ansi"


class Scope(Enum):
    TYPE = "type"
    FIELD = "field"


class AttributeKey(Enum):
    CUSTOM = "custom"
    RENAME = "rename"
    DISPLAY = "display"
    IGNORE = "ignore"


# Keys recognized in each scope
SCOPE_KEYS: dict[Scope, tuple[AttributeKey, ...]] = {
    Scope.TYPE: (AttributeKey.CUSTOM,),
    Scope.FIELD: (AttributeKey.RENAME, AttributeKey.DISPLAY, AttributeKey.IGNORE),
}

# Reason that hands an ignored field over to the type's custom function
CUSTOM_REASON = "custom"


@dataclass(frozen=True)
class Location:
    """Where an annotation was written: owner is `Type` or `Type.field`."""
    owner: str
    block: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.block is None:
            return self.owner
        if self.column is None:
            return f"{self.owner}:{self.block + 1}"
        return f"{self.owner}:{self.block + 1}:{self.column + 1}"


@dataclass(frozen=True)
class Diagnostic:
    """One reportable message, optionally pointing at a location."""
    message: str
    location: Optional[Location] = None

    def render(self) -> str:
        if self.location is None:
            return f"error: {self.message}"
        return f"{self.location}: error: {self.message}"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "location": str(self.location) if self.location else None,
        }


@dataclass(frozen=True)
class FunctionRef:
    """A dotted name pointing at a function. Never evaluated by the grammar."""
    path: str
    location: Optional[Location] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.path


AttributeValue = Union[str, FunctionRef, None]


@dataclass(frozen=True)
class Annotation:
    """A parsed `key` or `key = value` entry from an annotation block."""
    key: AttributeKey
    value: AttributeValue = None
    location: Optional[Location] = field(default=None, compare=False)


@dataclass
class RawField:
    """A field exactly as declared, before any resolution."""
    name: str
    declared_type: Any = None
    blocks: list[str] = field(default_factory=list)


@dataclass
class RawDeclaration:
    """A record type exactly as declared, before any resolution."""
    type_name: str
    blocks: list[str] = field(default_factory=list)
    fields: list[RawField] = field(default_factory=list)
    named: bool = True


@dataclass(frozen=True)
class ActiveField:
    """A field that participates in comparison."""
    label: str
    format_ref: FunctionRef
    field_id: str

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "format_ref": self.format_ref.path,
            "field_id": self.field_id,
        }


@dataclass(frozen=True)
class IgnoredCustom:
    """A field left to the type-level custom function."""
    field_id: str


@dataclass(frozen=True)
class IgnoredOther:
    """A field excluded from comparison; the reason is informational only."""
    field_id: str
    reason: Optional[str] = None


FieldDescriptor = Union[ActiveField, IgnoredCustom, IgnoredOther]


@dataclass
class TypeDescriptor:
    """Normalized, validated configuration of one record type."""
    type_id: str
    custom_fn: Optional[FunctionRef] = None
    fields: list[ActiveField] = field(default_factory=list)
    ignored: list[Union[IgnoredCustom, IgnoredOther]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type_id": self.type_id,
            "custom_fn": self.custom_fn.path if self.custom_fn else None,
            "fields": [f.to_dict() for f in self.fields],
            "ignored": [f.field_id for f in self.ignored],
        }
