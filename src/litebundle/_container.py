from __future__ import annotations

import collections.abc
import inspect
import logging
import threading
import typing
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
    get_type_hints,
    overload,
)

from ._bundle import register_bundle, register_bundles, register_bundles_from
from ._errors import ResolutionError
from ._factory import _UNSET, register_factory
from ._lifetime import Lifetime


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._protocols import ServiceBundle

    T = TypeVar("T")


@dataclass
class Registration:
    factory: Callable[..., object] | None
    impl: type | None
    lifetime: Lifetime
    cached_instance: object | None = None  # cached singleton


class Container:
    """Minimal DI container.

    - register types, factories or instances
    - resolve with constructor injection
    - lifetimes: singleton / scoped / transient
    - scopes via create_scope()
    - chaining helpers for factory and bundle registration.
    """

    def __init__(self) -> None:
        self._registrations: dict[Any, Registration] = {}
        self._scoped_instances: dict[Any, object] = {}
        self._lock = threading.RLock()

    def __contains__(self, token: object) -> bool:
        return _normalize_token(token) in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)

    @overload
    def register(
        self,
        token: type[T],
        impl: type[T],
        *,
        factory: None = ...,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None: ...

    @overload
    def register(
        self,
        token: Any,
        impl: None = ...,
        *,
        factory: Callable[[Container], Any],
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None: ...

    def register(
        self,
        token: Any,
        impl: type | None = None,
        *,
        factory: Callable[[Container], Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register a concrete type or a factory for a token.

        Registering a token again replaces the previous registration.

        Example:
          container.register(IFoo, FooImpl)
          container.register("db", factory=create_db, lifetime=Lifetime.SCOPED)

        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            msg = "Either `impl` or `factory` must be provided."
            raise ValueError(msg)

        token = _normalize_token(token)
        if impl is not None and _is_type_token(token):
            _validate_impl(cls=token, impl=impl)

        with self._lock:
            self._registrations[token] = Registration(factory=factory, impl=impl, lifetime=lifetime)
            self._scoped_instances.pop(token, None)

        logger.debug("Registered %r (%s)", token, lifetime.value)

    def register_instance(
        self,
        token: Any,
        instance: object,
        *,
        replace: bool = False,
    ) -> None:
        """Register a pre-built instance (always singleton)."""
        token = _normalize_token(token)
        if _is_type_token(token):
            _validate_impl(cls=token, impl=type(instance))

        with self._lock:
            if not replace and token in self._registrations:
                msg = f"Token {token!r} is already registered. Pass replace=True to overwrite."
                raise KeyError(msg)
            self._registrations[token] = Registration(
                factory=None,
                impl=None,
                lifetime=Lifetime.SINGLETON,
                cached_instance=instance,
            )

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: Any) -> Any: ...

    def resolve(self, token: Any) -> Any:
        """Resolve the token to an instance.

        - If a registration exists: use it (factory/impl).
        - If no registration and token is a concrete class: attempt auto-wiring by type hints.
        """
        token = _normalize_token(token)
        reg = self._lookup(token)
        if reg is None:
            return self._autowire(token)

        return self._resolve_registration(token, reg)

    def register_factory(
        self,
        service: type,
        impl: type | None = None,
        *,
        factory: Callable[..., Any] = _UNSET,
    ) -> Container:
        """Chaining form of `litebundle.register_factory`."""
        return register_factory(self, service, impl, factory=factory)

    def register_bundle(self, bundle: ServiceBundle | type[ServiceBundle]) -> Container:
        return register_bundle(self, bundle)

    def register_bundles(self, *bundles: ServiceBundle | type[ServiceBundle]) -> Container:
        return register_bundles(self, *bundles)

    def register_bundles_from(self, bundles: Iterable[ServiceBundle | type[ServiceBundle]]) -> Container:
        return register_bundles_from(self, bundles)

    def create_scope(self) -> Scope:
        """Create a scope that prefers its own registrations/instances, falls back to parent."""
        return Scope(self, _from_parent=True)

    def _lookup(self, token: Any) -> Registration | None:
        return self._registrations.get(token)

    def _resolve_registration(self, token: Any, reg: Registration) -> object:
        with self._lock:
            if reg.lifetime is Lifetime.SINGLETON and reg.cached_instance is not None:
                return reg.cached_instance

            if reg.lifetime is Lifetime.SCOPED and token in self._scoped_instances:
                return self._scoped_instances[token]

            if reg.factory is not None:
                instance = reg.factory(self)
                if _is_type_token(token):
                    _check_factory_instance(token, instance)
            else:
                instance = Constructor(self).construct(typing.cast("type", reg.impl))

            if reg.lifetime is Lifetime.SINGLETON:
                reg.cached_instance = instance
            elif reg.lifetime is Lifetime.SCOPED:
                self._scoped_instances[token] = instance

            return instance

    def _autowire(self, token: Any) -> object:
        if not _is_type_token(token) or _is_protocol(token) or inspect.isabstract(token):
            msg = f"No registration found for token: {token!r}"
            raise KeyError(msg)
        return Constructor(self).construct(token)

    def _resolve_param(
        self,
        cls: type,
        name: str,
        p: inspect.Parameter,
        hints: dict[str, Any],
    ) -> Any:
        """Resolving param.

        Resolution precedence:
        1. type-based registration (or auto-wiring of the annotated class)
        2. name-based registration
        3. default
        4. error.
        """
        ann = hints.get(name, inspect.Signature.empty)
        if ann is not inspect.Signature.empty:
            ann = _normalize_token(ann)
            if self._lookup(ann) is not None or (_is_type_token(ann) and ann.__module__ != "builtins"):
                try:
                    return self.resolve(ann)
                except KeyError:
                    pass

        if self._lookup(name) is not None:
            return self.resolve(name)

        if p.default is not inspect.Parameter.empty:
            return p.default

        ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not inspect.Signature.empty else "no-annotation"
        msg = (
            f"Cannot satisfy constructor parameter '{name}' for {cls.__name__}. "
            f"No registration/default found (annotation: {ann_repr})."
        )
        raise ResolutionError(msg)


class Scope(Container):
    """A scoped container that looks up in itself first, then falls back to a parent container.

    SCOPED registrations made on an ancestor get one instance per scope.
    """

    def __init__(self, parent: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        super().__init__()
        self._parent = parent

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: Any) -> Any: ...

    def resolve(self, token: Any) -> Any:
        """Resolve the token to an instance.

        Singletons registered on an ancestor are resolved by that ancestor. Everything
        else is built here, so scoped dependencies are taken from this scope.
        """
        token = _normalize_token(token)
        reg = self._lookup(token)
        if reg is None:
            return self._autowire(token)

        if reg.lifetime is Lifetime.SINGLETON and token not in self._registrations:
            return self._parent.resolve(token)

        return self._resolve_registration(token, reg)

    def _lookup(self, token: Any) -> Registration | None:
        reg = self._registrations.get(token)
        if reg is None:
            return self._parent._lookup(token)  # noqa: SLF001
        return reg


class Constructor:
    def __init__(self, resolver: Container) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T]) -> T:
        if cls.__init__ is object.__init__:
            return cls()

        sig = inspect.signature(cls)
        hints = _get_init_type_hints(cls)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for name, p in sig.parameters.items():
            # Variadic params are never injected
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            value = self._resolver._resolve_param(cls, name, p, hints)  # noqa: SLF001
            if p.kind is p.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value

        return cls(*args, **kwargs)


def _normalize_token(token: Any) -> Any:
    # typing.Callable[[], X] and collections.abc.Callable[[], X] name the same factory
    if typing.get_origin(token) is collections.abc.Callable:
        args = typing.get_args(token)
        # Bare Callable has no args
        if len(args) == 2:  # noqa: PLR2004
            params, ret = args
            return collections.abc.Callable[params, ret]
    return token


def _is_type_token(token: Any) -> bool:
    # Parameterized generics pass isclass() on some interpreters
    return inspect.isclass(token) and typing.get_origin(token) is None


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False))


def _is_runtime_checkable_protocol(tp: type) -> bool:
    return _is_protocol(tp) and bool(getattr(tp, "_is_runtime_protocol", False))


def _validate_impl(cls: type, impl: type) -> None:
    """Validate that 'impl' implements 'cls'.

    - For normal classes/ABCs: require issubclass(impl, token).
    - For Protocols: nominal via MRO, otherwise structural conformance.
    """
    if not _is_protocol(cls):
        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)
        return

    if cls in getattr(impl, "__mro__", ()):
        return

    _validate_protocol_structural_conformance(cls, impl)


def _check_factory_instance(token: type, instance: object) -> None:
    if not _is_protocol(token):
        if not isinstance(instance, token):
            msg = f"Resolved instance {type(instance).__name__} is not an instance of {token.__name__}"
            raise TypeError(msg)
        return

    try:
        _validate_impl(token, type(instance))
    except TypeError as e:
        msg = f"Resolved instance {type(instance).__name__} does not conform to protocol {token.__name__}"
        raise TypeError(msg) from e

    if _is_runtime_checkable_protocol(token) and not isinstance(instance, token):
        msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {token.__name__}"
        raise TypeError(msg)


def _positional_arity(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


def _validate_protocol_structural_conformance(proto_cls: type, impl: type) -> None:
    """Best-effort structural conformance: member presence + required positional arity."""
    missing: list[str] = []
    mismatches: list[str] = []

    try:
        proto_hints = get_type_hints(proto_cls)
    except (NameError, TypeError):
        proto_hints = {}

    missing.extend(name for name in proto_hints if not name.startswith("_") and not hasattr(impl, name))

    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        impl_attr = getattr(impl, name, None)
        if impl_attr is None:
            missing.append(name)
            continue

        if not callable(impl_attr):
            mismatches.append(f"{name}: not callable on {impl.__name__}")
            continue

        try:
            proto_arity = _positional_arity(inspect.signature(proto_attr))
            impl_arity = _positional_arity(inspect.signature(impl_attr))
        except (TypeError, ValueError) as e:
            mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        if impl_arity < proto_arity:
            mismatches.append(
                f"{name}: impl has fewer required positional params ({impl_arity}) than protocol ({proto_arity})"
            )

    if missing or mismatches:
        msgs = []
        if missing:
            msgs.append(f"missing members: {', '.join(missing)}")
        if mismatches:
            msgs.append(f"signature mismatches: {', '.join(mismatches)}")

        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{proto_cls.__name__}: {'; '.join(msgs)}"
        )
        raise TypeError(msg)


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
