"""
cachediff - human readable cache invalidation diffs

Compiles per-field and per-type annotations on a dataclass into a
deterministic `diff(self, old) -> list[str]` procedure. An empty list means
the cached artifact described by `old` is still valid; every entry explains
one reason it is not.
"""

from .engine import (
    CacheDiff,
    cache_diff,
    compile_diff,
    descriptor_for,
    diff_field,
    generate_source,
    is_cache_diff,
)
from .config import CompilerConfig, default_config
from .models import (
    ActiveField,
    Diagnostic,
    FunctionRef,
    IgnoredCustom,
    IgnoredOther,
    Location,
    LogLevel,
    RawDeclaration,
    RawField,
    TypeDescriptor,
    ValueStyle,
)
from .container import ContainerResolver
from .fields import FieldResolver
from .generator import DiffGenerator
from .exceptions import (
    AttributeSyntaxError,
    CacheDiffError,
    ConfigFileError,
    ConfigurationError,
    ConflictingAttributes,
    DiagnosticReport,
    DuplicateAttribute,
    MissingCustomHook,
    NoComparableFields,
    UnknownAttributeKey,
    UnresolvedReference,
    UnsupportedShape,
)
from .style import styled_value, wrap_value
from .runner import GoldenRunner, GoldenReport, CaseResult, run_golden

__version__ = "0.1.0"
__all__ = [
    # Decorator
    "CacheDiff",
    "cache_diff",
    "compile_diff",
    "descriptor_for",
    "diff_field",
    "generate_source",
    "is_cache_diff",
    # Config
    "CompilerConfig",
    "default_config",
    "LogLevel",
    "ValueStyle",
    # Pipeline
    "ContainerResolver",
    "FieldResolver",
    "DiffGenerator",
    "RawDeclaration",
    "RawField",
    "TypeDescriptor",
    "ActiveField",
    "IgnoredCustom",
    "IgnoredOther",
    "FunctionRef",
    # Diagnostics
    "Diagnostic",
    "Location",
    "CacheDiffError",
    "ConfigFileError",
    "ConfigurationError",
    "AttributeSyntaxError",
    "UnknownAttributeKey",
    "DuplicateAttribute",
    "ConflictingAttributes",
    "MissingCustomHook",
    "NoComparableFields",
    "UnsupportedShape",
    "UnresolvedReference",
    "DiagnosticReport",
    # Value wrapping
    "wrap_value",
    "styled_value",
    # Golden runner
    "GoldenRunner",
    "GoldenReport",
    "CaseResult",
    "run_golden",
]
