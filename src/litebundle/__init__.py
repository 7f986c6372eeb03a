"""Factory and bundle registration helpers for dependency injection containers.

This package adds two conveniences on top of a DI container: registering a
service together with a zero-argument factory that resolves fresh instances on
demand, and grouping related registrations into reusable bundles applied in
one call. A small reference container is included.

Exports:
- `register_factory`: Register a service (or a delegate) plus a singleton factory callable.
- `factory_of`: Registration key of the factory callable for a service type.
- `register_bundle`, `register_bundles`, `register_bundles_from`: Apply bundles to a container.
- `ServiceBundle`: Protocol for bundles (`load(container)`).
- `ServiceRegistry`: Protocol for containers accepted by the helpers.
- `Container`: Reference DI container with singleton/scoped/transient lifetimes.
- `Lifetime`: Enum for controlling object lifetimes (singleton, scoped or transient).
- `Scope`: Scoped container that resolves within itself first, then falls back
  to a parent container.
- `InvalidArgumentError`: Raised when a required argument is None.
- `ResolutionError`: Raised when a constructor parameter cannot be satisfied.
"""

from ._bundle import register_bundle, register_bundles, register_bundles_from
from ._container import Container, Scope
from ._errors import InvalidArgumentError, ResolutionError
from ._factory import factory_of, register_factory
from ._lifetime import Lifetime
from ._protocols import ServiceBundle, ServiceRegistry


__all__ = [
    "Container",
    "InvalidArgumentError",
    "Lifetime",
    "ResolutionError",
    "Scope",
    "ServiceBundle",
    "ServiceRegistry",
    "factory_of",
    "register_bundle",
    "register_bundles",
    "register_bundles_from",
    "register_factory",
]
