"""Resolver library — pluggable value sources and the resolution engine.

Public API:
    - BaseResolver: Abstract value-source interface
    - ResolutionContext: What a resolver sees for one field
    - ResolutionError: Per-field resolution failure
    - CommandResolver: ``exec(...)`` external command source
    - EnvironmentResolver: ``env(...)`` host environment lookup
    - ResolutionEngine / FieldResolution: Dependency-ordered concurrent resolution
    - register_resolver: Add a resolver kind
    - get_resolver: Resolver factory/registry
    - build_resolvers: Instantiate every registered resolver
"""

from typing import Any

from envlock.lib.resolver.base import BaseResolver, ResolutionContext, ResolutionError
from envlock.lib.resolver.command import CommandResolver
from envlock.lib.resolver.engine import FieldResolution, ResolutionEngine
from envlock.lib.resolver.environment import EnvironmentResolver, interpolate

# Resolver registry: call kind -> resolver class
_RESOLVERS: dict[str, type[BaseResolver]] = {
    "exec": CommandResolver,
    "env": EnvironmentResolver,
}

# Constructor keyword arguments each kind accepts from engine settings.
_SETTING_KWARGS: dict[str, tuple[str, ...]] = {
    "exec": ("timeout",),
}


def register_resolver(kind: str, cls: type[BaseResolver], *, accepts: tuple[str, ...] = ()) -> None:
    """Register a resolver class under a call kind.

    Args:
        kind: Call name used in schemas, e.g. ``vault`` for ``vault(path)``.
        cls: Resolver class; instantiated per invocation.
        accepts: Setting keyword arguments the constructor takes (``timeout``).

    Raises:
        ValueError: If the kind is already registered.
    """
    if kind in _RESOLVERS:
        msg = f"Resolver kind already registered: {kind!r}"
        raise ValueError(msg)
    _RESOLVERS[kind] = cls
    _SETTING_KWARGS[kind] = accepts


def unregister_resolver(kind: str) -> None:
    """Remove a resolver kind (no-op if absent)."""
    _RESOLVERS.pop(kind, None)
    _SETTING_KWARGS.pop(kind, None)


def get_available_resolvers() -> list[str]:
    """Return the names of all registered resolver kinds.

    Returns:
        Sorted list of kind strings.
    """
    return sorted(_RESOLVERS.keys())


def get_resolver(kind: str, **kwargs: Any) -> BaseResolver:
    """Get a resolver instance by kind.

    Args:
        kind: Registered call kind.
        **kwargs: Forwarded to the resolver constructor.

    Returns:
        An instance of the requested resolver.

    Raises:
        ValueError: If the kind is not registered.
    """
    cls = _RESOLVERS.get(kind)
    if cls is None:
        msg = f"Unknown resolver kind: {kind!r}. Available: {list(_RESOLVERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def build_resolvers(timeout: float = 10.0) -> dict[str, BaseResolver]:
    """Instantiate every registered resolver with engine settings.

    Args:
        timeout: Per-call timeout passed to resolvers that accept one.

    Returns:
        Resolver instances keyed by kind.
    """
    settings_kwargs = {"timeout": timeout}
    resolvers: dict[str, BaseResolver] = {}
    for kind in get_available_resolvers():
        kwargs = {key: settings_kwargs[key] for key in _SETTING_KWARGS.get(kind, ()) if key in settings_kwargs}
        resolvers[kind] = get_resolver(kind, **kwargs)
    return resolvers


__all__ = [
    "BaseResolver",
    "CommandResolver",
    "EnvironmentResolver",
    "FieldResolution",
    "ResolutionContext",
    "ResolutionEngine",
    "ResolutionError",
    "build_resolvers",
    "get_available_resolvers",
    "get_resolver",
    "interpolate",
    "register_resolver",
    "unregister_resolver",
]
