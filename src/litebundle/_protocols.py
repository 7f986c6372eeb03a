"""Capability contracts used by the registration helpers.

The helpers never depend on a concrete container class. Anything exposing
``register``/``resolve`` with litebundle's calling convention will do.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._lifetime import Lifetime


class ServiceRegistry(Protocol):
    def register(
        self,
        token: Any,
        impl: type | None = ...,
        *,
        factory: Callable[..., Any] | None = ...,
        lifetime: Lifetime = ...,
    ) -> None: ...

    def resolve(self, token: Any) -> Any: ...


@runtime_checkable
class ServiceBundle(Protocol):
    """A reusable group of registrations applied to a container as a unit."""

    def load(self, container: ServiceRegistry) -> None: ...
