"""
Scope resolvers for formulafun.

A scope resolver answers one question during synthesis: is there a value
bound to this name around the place the function is being built? Functions
only consult a resolver while they are being synthesized; afterwards they
never look at the surrounding scope again.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union

from ..utils.validation import is_numeric


class _NotFound:
    def __repr__(self) -> str:
        return "<not found>"


NOT_FOUND = _NotFound()


class ScopeResolver(ABC):
    """Abstract base class for name lookup during synthesis."""

    @abstractmethod
    def lookup(self, name: str) -> Any:
        """Value bound to ``name``, or ``NOT_FOUND``."""

    def lookup_numeric(self, name: str) -> Any:
        """
        Numeric value bound to ``name``.

        Returns:
            The value if it is numeric, otherwise ``NOT_FOUND``
        """
        value = self.lookup(name)
        if value is NOT_FOUND or not is_numeric(value):
            return NOT_FOUND
        return value


class NullScope(ScopeResolver):
    """Resolves nothing. Used unless a scope is supplied."""

    def lookup(self, name: str) -> Any:
        return NOT_FOUND

    def __repr__(self) -> str:
        return "NullScope()"


class MappingScope(ScopeResolver):
    """Resolves names from a snapshot of a mapping."""

    def __init__(self, bindings: Mapping[str, Any]):
        self._bindings: Dict[str, Any] = dict(bindings)

    def lookup(self, name: str) -> Any:
        return self._bindings.get(name, NOT_FOUND)

    def functions(self) -> Dict[str, Any]:
        """Callables and modules among the bindings."""
        return {
            name: value for name, value in self._bindings.items()
            if callable(value) or inspect.ismodule(value)
        }

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._bindings)} names)"


class CallerScope(MappingScope):
    """
    Snapshot of a calling frame's variables.

    Locals shadow globals, as they would for code running in that frame.

    Example:
        b = 2
        f = make_fun("b * x ~ x", scope=CallerScope.capture())
        f(3)  # 6
    """

    @classmethod
    def capture(cls, depth: int = 1) -> "CallerScope":
        """
        Capture the variables of a calling frame.

        Args:
            depth: How many frames to walk back; 1 is the caller of
                ``capture``

        Returns:
            CallerScope holding a copy of that frame's bindings
        """
        frame = inspect.currentframe()
        try:
            for _ in range(depth):
                if frame is None:
                    break
                frame = frame.f_back

            if frame is None:
                return cls({})

            bindings = dict(frame.f_globals)
            bindings.update(frame.f_locals)
        finally:
            del frame

        return cls(bindings)


def as_scope_resolver(
    scope: Optional[Union[ScopeResolver, Mapping[str, Any]]]
) -> ScopeResolver:
    """
    Coerce a scope argument to a ScopeResolver.

    Args:
        scope: None, a ScopeResolver, or a mapping of names to values

    Returns:
        NullScope for None, the resolver itself, or a MappingScope
    """
    if scope is None:
        return NullScope()

    if isinstance(scope, ScopeResolver):
        return scope

    if isinstance(scope, Mapping):
        return MappingScope(scope)

    raise TypeError(
        f"scope must be a ScopeResolver or a mapping, not {type(scope).__name__}"
    )
