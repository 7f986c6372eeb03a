from __future__ import annotations

import collections.abc
import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._errors import require
from ._lifetime import Lifetime


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._protocols import ServiceRegistry

    T = TypeVar("T")
    R = TypeVar("R", bound=ServiceRegistry)

# Distinguishes "no factory given" from an explicit `factory=None`.
_UNSET: Any = object()


def factory_of(service: type[T]) -> Any:
    """Registration key of the zero-argument callable that produces `service`.

    Annotate a constructor parameter with the same type to get the factory injected:

        class Handler:
            def __init__(self, make_session: Callable[[], Session]): ...
    """
    return collections.abc.Callable[[], service]


@overload
def register_factory(container: R, service: type[T]) -> R: ...


@overload
def register_factory(container: R, service: type[T], impl: type[T]) -> R: ...


@overload
def register_factory(container: R, service: type[T], *, factory: Callable[[], T]) -> R: ...


@overload
def register_factory(container: R, service: type[T], *, factory: Callable[[R], T]) -> R: ...


def register_factory(
    container: R,
    service: type[T],
    impl: type | None = None,
    *,
    factory: Callable[..., Any] = _UNSET,
) -> R:
    """Register `service` together with a singleton zero-argument factory for it.

    Forms:
      register_factory(c, Foo)                  # Foo transient + factory resolving Foo
      register_factory(c, IFoo, Foo)            # IFoo -> Foo transient + factory resolving IFoo
      register_factory(c, IFoo, factory=f)      # factory is `f` itself, f() -> IFoo
      register_factory(c, IFoo, factory=g)      # factory calls g(c) on every call, g(c) -> IFoo

    With a delegate only the factory is registered, never `service` itself.
    Returns `container` so calls can be chained.
    """
    require(container, "container")
    require(service, "service")

    if factory is not _UNSET:
        require(factory, "factory")
        if impl is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)
        return _register_delegate(container, service, factory)

    container.register(service, service if impl is None else impl, lifetime=Lifetime.TRANSIENT)
    container.register(
        factory_of(service),
        factory=lambda c: lambda: c.resolve(service),
        lifetime=Lifetime.SINGLETON,
    )
    logger.debug("Registered %r with factory", service)
    return container


def _register_delegate(container: R, service: type, delegate: Callable[..., Any]) -> R:
    if _takes_container(delegate):
        # Re-run the delegate per call so its dependencies are resolved fresh each time.
        strategy: Callable[[Any], Any] = lambda c: lambda: delegate(c)  # noqa: E731
    else:
        strategy = lambda _: delegate  # noqa: E731

    container.register(factory_of(service), factory=strategy, lifetime=Lifetime.SINGLETON)
    logger.debug("Registered factory delegate for %r", service)
    return container


def _takes_container(delegate: Callable[..., Any]) -> bool:
    if not callable(delegate):
        msg = f"Factory {delegate!r} is not callable"
        raise TypeError(msg)

    try:
        sig = inspect.signature(delegate)
    except (TypeError, ValueError):
        # Some builtins have no introspectable signature
        return False

    positional = 0
    for p in sig.parameters.values():
        if p.default is not inspect.Parameter.empty:
            continue
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
        elif p.kind is inspect.Parameter.KEYWORD_ONLY:
            positional = 2  # never satisfiable
            break

    if positional > 1:
        msg = f"Factory {delegate!r} must take no arguments or a single container argument"
        raise TypeError(msg)

    return positional == 1
