import unittest
from typing import Protocol, runtime_checkable

import pytest

from litebundle import Container, Lifetime, Scope


class TestContainerScopeBehavior(unittest.TestCase):
    parent: Container
    scope: Container

    def setUp(self):
        self.parent = Container()
        self.scope = self.parent.create_scope()

    def test_scope_cannot_be_created_directly(self):
        with pytest.raises(RuntimeError):
            Scope(self.parent)

    def test_scope_registration_overrides_parent_registration(self):
        class Service: ...

        parent_instance = Service()
        scope_instance = Service()

        self.parent.register(Service, factory=lambda c: parent_instance, lifetime=Lifetime.SINGLETON)
        self.scope.register(Service, factory=lambda c: scope_instance, lifetime=Lifetime.SINGLETON)

        assert self.scope.resolve(Service) is scope_instance
        assert self.parent.resolve(Service) is parent_instance

    def test_scope_resolves_from_parent_when_not_registered_locally(self):
        class Service: ...

        instance = Service()

        self.parent.register(Service, factory=lambda c: instance, lifetime=Lifetime.SINGLETON)

        assert self.scope.resolve(Service) is instance

    def test_parent_singleton_factory_receives_parent(self):
        class Service: ...

        received = []

        def make_service(container):
            received.append(container)
            return Service()

        self.parent.register(Service, factory=make_service, lifetime=Lifetime.SINGLETON)
        self.scope.resolve(Service)

        assert received == [self.parent]

    def test_parent_transient_is_built_with_scoped_dependencies_of_scope(self):
        class Session: ...

        class Repo:
            def __init__(self, session: Session):
                self.session = session

        self.parent.register(Session, Session, lifetime=Lifetime.SCOPED)
        self.parent.register(Repo, Repo, lifetime=Lifetime.TRANSIENT)

        other = self.parent.create_scope()

        assert self.scope.resolve(Repo).session is self.scope.resolve(Repo).session
        assert self.scope.resolve(Repo).session is not other.resolve(Repo).session

    def test_nested_scope_gets_its_own_scoped_instance(self):
        class Session: ...

        self.parent.register(Session, Session, lifetime=Lifetime.SCOPED)
        nested = self.scope.create_scope()

        assert nested.resolve(Session) is nested.resolve(Session)
        assert nested.resolve(Session) is not self.scope.resolve(Session)

    def test_scope_registering_invalid_runtime_checkable_protocol_raises_type_error(self):
        @runtime_checkable
        class SupportsFoo(Protocol):
            def foo(self) -> int: ...

        class BadImpl: ...

        with pytest.raises(TypeError):
            self.scope.register(SupportsFoo, impl=BadImpl, lifetime=Lifetime.TRANSIENT)
