"""Resolution of function references to callables."""

from __future__ import annotations

import builtins
import importlib
from typing import Any, Callable, Optional

from .models import FunctionRef
from .exceptions import UnresolvedReference

_MISSING = object()


def identity(value: Any) -> Any:
    """Default display conversion: the value formats as itself."""
    return value


class ReferenceResolver:
    """
    Looks up dotted function references for one record type.

    Search order for the first name: the local namespace captured where the
    type was declared, the module globals, builtins, then importable modules.
    """

    def __init__(self, globalns: Optional[dict] = None, localns: Optional[dict] = None):
        self.globalns = globalns or {}
        self.localns = localns or {}

    def resolve(self, ref: FunctionRef) -> Callable:
        parts = ref.path.split(".")
        target = self._lookup_name(parts[0])
        rest = parts[1:]

        if target is _MISSING:
            target, rest = self._import_prefix(parts)
            if target is _MISSING:
                raise UnresolvedReference(ref.path, ref.location)

        for part in rest:
            target = getattr(target, part, _MISSING)
            if target is _MISSING:
                raise UnresolvedReference(ref.path, ref.location)

        if not callable(target):
            raise UnresolvedReference(ref.path, ref.location)
        return target

    def _lookup_name(self, name: str) -> Any:
        if name in self.localns:
            return self.localns[name]
        if name in self.globalns:
            return self.globalns[name]
        return getattr(builtins, name, _MISSING)

    def _import_prefix(self, parts: list[str]) -> tuple[Any, list[str]]:
        """Import the longest dotted prefix that is a module."""
        for end in range(len(parts), 0, -1):
            module_name = ".".join(parts[:end])
            try:
                module = importlib.import_module(module_name)
            except ImportError:
                continue
            return module, parts[end:]
        return _MISSING, []
