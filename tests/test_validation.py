import unittest
from typing import Protocol, runtime_checkable

import pytest

from litebundle import Container, factory_of, register_bundle, register_bundles, register_factory


@runtime_checkable
class Clock(Protocol):
    def now(self) -> float: ...


class Formatter(Protocol):
    def render(self, value: float, unit: str) -> str: ...


class SystemClock:
    def now(self) -> float:
        return 1.5


class NominalClock(Clock):
    def now(self) -> float:
        return 2.5


class Sundial:
    # Missing `now`
    def shadow(self) -> str:
        return "noon"


class TerseFormatter:
    # One positional param short of Formatter.render
    def render(self, value: float) -> str:
        return str(value)


class ClockBundle:
    def load(self, container):
        register_factory(container, Clock, SystemClock)


class BrokenClockBundle:
    def load(self, container):
        register_factory(container, Clock, Sundial)


class FormatterBundle:
    def load(self, container):
        container.register(Formatter, TerseFormatter)


class TestFactoryImplValidation(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_structurally_conforming_impl_is_accepted(self):
        register_factory(self.cont, Clock, SystemClock)

        make_clock = self.cont.resolve(factory_of(Clock))

        assert make_clock().now() == 1.5
        assert make_clock() is not make_clock()

    def test_nominal_protocol_subclass_is_accepted(self):
        register_factory(self.cont, Clock, NominalClock)

        assert type(self.cont.resolve(factory_of(Clock))()) is NominalClock

    def test_impl_missing_member_is_rejected_before_any_registration(self):
        with pytest.raises(TypeError):
            register_factory(self.cont, Clock, Sundial)

        assert len(self.cont) == 0
        assert factory_of(Clock) not in self.cont

    def test_impl_with_fewer_positional_params_is_rejected(self):
        with pytest.raises(TypeError):
            register_factory(self.cont, Formatter, TerseFormatter)

        assert len(self.cont) == 0

    def test_unrelated_concrete_impl_is_rejected(self):
        class Base: ...

        class Unrelated: ...

        with pytest.raises(TypeError):
            register_factory(self.cont, Base, Unrelated)

        assert factory_of(Base) not in self.cont

    def test_rejected_impl_keeps_previous_factory(self):
        register_factory(self.cont, Clock, SystemClock)

        with pytest.raises(TypeError):
            register_factory(self.cont, Clock, Sundial)

        assert type(self.cont.resolve(factory_of(Clock))()) is SystemClock

    def test_scope_validation_leaves_parent_untouched(self):
        scope = self.cont.create_scope()

        with pytest.raises(TypeError):
            register_factory(scope, Clock, Sundial)

        assert len(scope) == 0
        assert len(self.cont) == 0


class TestDelegateResultsAreNotValidated(unittest.TestCase):
    def test_delegate_result_is_returned_as_is(self):
        c = Container()
        register_factory(c, Clock, factory=Sundial)

        assert type(c.resolve(factory_of(Clock))()) is Sundial

    def test_container_still_validates_results_of_its_own_factories(self):
        c = Container()
        c.register(Clock, factory=lambda _: Sundial())

        with pytest.raises(TypeError):
            c.resolve(Clock)


class TestBundleValidation(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_invalid_registration_inside_bundle_propagates(self):
        with pytest.raises(TypeError):
            register_bundle(self.cont, FormatterBundle)

        assert Formatter not in self.cont

    def test_invalid_bundle_keeps_earlier_bundles_and_skips_later_ones(self):
        with pytest.raises(TypeError):
            register_bundles(self.cont, ClockBundle(), BrokenClockBundle(), FormatterBundle())

        assert type(self.cont.resolve(factory_of(Clock))()) is SystemClock
        assert Formatter not in self.cont

    def test_register_instance_inside_bundle_is_validated(self):
        class SundialBundle:
            def load(self, container):
                container.register_instance(Clock, Sundial())

        with pytest.raises(TypeError):
            register_bundle(self.cont, SundialBundle)

        assert Clock not in self.cont
