"""Custom exceptions for the cachediff compiler."""

from __future__ import annotations

from typing import Iterable, Optional

from .models import Diagnostic, Location


class CacheDiffError(Exception):
    """Base exception for cachediff errors."""
    pass


class ConfigFileError(CacheDiffError):
    """Raised when a compiler configuration file cannot be used."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid cachediff config '{path}': {reason}")
        self.path = path
        self.reason = reason


class ConfigurationError(CacheDiffError):
    """
    A problem with the annotations declared on a record type.

    Every configuration error carries its own message and location plus any
    related diagnostics (a prior definition, a hint) that must be shown with it.
    """
    def __init__(
        self,
        message: str,
        location: Optional[Location] = None,
        related: Iterable[Diagnostic] = ()
    ):
        super().__init__(message)
        self.message = message
        self.location = location
        self.related = tuple(related)

    def diagnostics(self) -> list[Diagnostic]:
        return [Diagnostic(self.message, self.location), *self.related]


class AttributeSyntaxError(ConfigurationError):
    """Raised when an annotation block does not follow the attribute grammar."""
    pass


class UnknownAttributeKey(ConfigurationError):
    """Raised when a key is not recognized for the scope it was written in."""
    def __init__(
        self,
        namespace: str,
        key: str,
        valid_keys: Iterable[str],
        location: Optional[Location] = None,
        hint: Optional[str] = None
    ):
        self.key = key
        self.valid_keys = sorted(valid_keys)
        self.hint = hint
        choices = ", ".join(f"'{k}'" for k in self.valid_keys)
        related = [Diagnostic(hint, location)] if hint else []
        super().__init__(
            f"Unknown {namespace} attribute: '{key}'. Must be one of {choices}",
            location,
            related
        )


class DuplicateAttribute(ConfigurationError):
    """Raised when one annotation block scope declares the same key twice."""
    def __init__(
        self,
        namespace: str,
        key: str,
        location: Optional[Location] = None,
        previous: Optional[Location] = None
    ):
        self.key = key
        self.previous = previous
        super().__init__(
            f"{namespace} duplicate attribute: '{key}'",
            location,
            [Diagnostic(f"previously '{key}' defined here", previous)]
        )


class ConflictingAttributes(ConfigurationError):
    """Raised when `ignore` is combined with `rename` or `display`."""
    def __init__(self, namespace: str, field_name: str, location: Optional[Location] = None):
        self.field_name = field_name
        super().__init__(
            f"The {namespace} attribute 'ignore' renders other attributes useless, "
            "remove additional attributes",
            location
        )


class MissingCustomHook(ConfigurationError):
    """Raised when a field is delegated to a custom function the type never declares."""
    def __init__(
        self,
        namespace: str,
        field_name: str,
        type_name: str,
        location: Optional[Location] = None
    ):
        self.field_name = field_name
        self.type_name = type_name
        super().__init__(
            f"field '{field_name}' on {type_name} marked ignored as custom, but no "
            f"'{namespace}(custom = <function>)' found on '{type_name}'",
            location
        )


class NoComparableFields(ConfigurationError):
    """Raised when a type has nothing left to compare."""
    def __init__(self, namespace: str, macro_name: str, type_name: str):
        self.type_name = type_name
        super().__init__(
            f"No fields to compare for {macro_name}, ensure {type_name} has at least "
            f"one named field that isn't '{namespace}(ignore)'-d",
            Location(type_name)
        )


class UnsupportedShape(ConfigurationError):
    """Raised when the decorated type does not have named fields."""
    def __init__(self, macro_name: str, type_name: str):
        self.type_name = type_name
        super().__init__(
            f"{macro_name} can only be used on dataclasses with named fields",
            Location(type_name)
        )


class UnresolvedReference(ConfigurationError):
    """Raised when a function reference cannot be found while linking."""
    def __init__(self, reference: str, location: Optional[Location] = None):
        self.reference = reference
        super().__init__(f"Cannot resolve function reference: '{reference}'", location)


class DiagnosticReport(CacheDiffError):
    """
    Every configuration problem found in one type, reported together.

    The report keeps the individual errors and flattens their diagnostics into
    one ordered list. Only exact duplicates (same message, same location) are
    collapsed.
    """
    def __init__(self, errors: Iterable[ConfigurationError], type_name: Optional[str] = None):
        self.errors = list(errors)
        self.type_name = type_name
        self.diagnostics: list[Diagnostic] = []
        seen = set()
        for error in self.errors:
            for diagnostic in error.diagnostics():
                if diagnostic in seen:
                    continue
                seen.add(diagnostic)
                self.diagnostics.append(diagnostic)
        super().__init__("\n".join(d.message for d in self.diagnostics))

    def render(self) -> str:
        """Render every diagnostic with its location, one per line."""
        return "\n".join(d.render() for d in self.diagnostics)

    def to_dict(self) -> dict:
        return {
            "type": self.type_name,
            "errors": [type(e).__name__ for e in self.errors],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
