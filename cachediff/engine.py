"""Decorator that compiles annotated dataclasses into diff procedures."""

from __future__ import annotations

import abc
import dataclasses
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .config import CompilerConfig, DEFAULT_CONFIG, default_config
from .container import ContainerResolver
from .declaration import declaration_from_class
from .generator import DiffGenerator
from .models import TypeDescriptor
from .references import ReferenceResolver
from .style import value_formatter, wrap_value

logger = logging.getLogger(__name__)

STATE_ATTR = "__cachediff__"


class CacheDiff(abc.ABC):
    """
    Cache invalidation with human readable differences.

    `diff` returns an empty list when the cache described by `old` can be
    kept; every entry explains one reason it must be invalidated. Implement it
    by hand, or let `@cache_diff` generate it.
    """

    @abc.abstractmethod
    def diff(self, old) -> list[str]:
        ...

    def fmt_value(self, value: Any) -> str:
        """How values are shown in diff entries."""
        return wrap_value(value)


@dataclass
class CompiledType:
    """Per-class compilation state, memoized on the class."""
    owner: type
    descriptor: TypeDescriptor
    generator: DiffGenerator
    resolver: ReferenceResolver
    procedure: Optional[Callable] = None


def cache_diff(
    *args,
    config: Optional[CompilerConfig] = None,
    localns: Optional[dict] = None
):
    """
    Class decorator generating `diff(self, old) -> list[str]`.

    Usage:
        @cache_diff
        @dataclass
        class Metadata:
            version: str

        @cache_diff('custom = diff_distro')
        @dataclass
        class Metadata:
            distro_name: str = diff_field('ignore = "custom"')
            ruby_version: str = diff_field('rename = "Ruby version"')

    Annotation errors are raised as one DiagnosticReport when the decorator
    is applied. Function references are linked on the first `diff` call.

    Local function references are found in the scope that applies the
    decorator. Code that applies it from a helper must pass that scope as
    `localns`.
    """
    if len(args) == 1 and isinstance(args[0], type):
        if localns is None:
            localns = _caller_locals()
        return _process(args[0], [], config, localns)

    blocks = list(args)

    def wrap(cls):
        names = localns if localns is not None else _caller_locals()
        return _process(cls, blocks, config, names)

    return wrap


def diff_field(*blocks: str, namespace: str = DEFAULT_CONFIG.namespace, **kwargs):
    """`dataclasses.field` carrying cachediff annotation blocks in its metadata."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[namespace] = list(blocks)
    return dataclasses.field(metadata=metadata, **kwargs)


def compile_diff(cls: type) -> Callable:
    """
    Link and compile the diff procedure for a decorated class.

    The result is memoized and installed as `cls.diff`.

    Raises:
        DiagnosticReport: a function reference cannot be resolved
    """
    state = _state(cls)
    if state.procedure is None:
        state.procedure = state.generator.build(state.resolver)
        state.owner.diff = state.procedure
    return state.procedure


def generate_source(cls: type) -> str:
    """Source text of the diff procedure for a decorated class."""
    return _state(cls).generator.source()


def descriptor_for(cls: type) -> TypeDescriptor:
    """The resolved type descriptor for a decorated class."""
    return _state(cls).descriptor


def is_cache_diff(cls: Any) -> bool:
    return isinstance(cls, type) and isinstance(getattr(cls, STATE_ATTR, None), CompiledType)


def _process(
    cls: type,
    blocks: list[str],
    config: Optional[CompilerConfig],
    localns: Optional[dict]
) -> type:
    config = config or default_config()
    declaration = declaration_from_class(cls, blocks, config.namespace, localns)
    descriptor = ContainerResolver(config).resolve_declaration(declaration)

    localns = dict(localns or {})
    localns.setdefault(cls.__name__, cls)
    module = sys.modules.get(cls.__module__)
    resolver = ReferenceResolver(vars(module) if module else {}, localns)

    setattr(cls, STATE_ATTR, CompiledType(
        owner=cls,
        descriptor=descriptor,
        generator=DiffGenerator(descriptor),
        resolver=resolver,
    ))
    cls.diff = _lazy_diff
    if getattr(cls, "fmt_value", CacheDiff.fmt_value) is CacheDiff.fmt_value:
        cls.fmt_value = staticmethod(value_formatter(config.value_style))
    if issubclass(cls, CacheDiff):
        abc.update_abstractmethods(cls)
    else:
        CacheDiff.register(cls)

    logger.debug("Registered %s for %s", cls.__qualname__, config.macro_name)
    return cls


def _lazy_diff(self, old) -> list[str]:
    return compile_diff(type(self))(self, old)


def _state(cls: type) -> CompiledType:
    state = getattr(cls, STATE_ATTR, None)
    if not isinstance(state, CompiledType):
        raise TypeError(f"{getattr(cls, '__name__', cls)!r} is not decorated with @cache_diff")
    return state


def _caller_locals() -> Optional[dict]:
    """
    Local names where the decorator was applied, when not at module level.

    Must be called directly from `cache_diff` or its `wrap`; frame 2 is the
    decorating scope only at that depth.
    """
    frame = sys._getframe(2)
    if frame.f_locals is frame.f_globals:
        return None
    return dict(frame.f_locals)
