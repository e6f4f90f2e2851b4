from typing import Protocol, runtime_checkable

import pytest

from servicelocator import DuplicateRegistrationError, Lifetime, ServiceLocator


def test_register_singleton_twice_raises():
    locator = ServiceLocator()

    class Service: ...

    locator.register(Service, Service, Lifetime.SINGLETON)

    with pytest.raises(DuplicateRegistrationError) as ctx:
        locator.register(Service, Service, Lifetime.SINGLETON)

    assert "Service" in str(ctx.value)
    assert ctx.value.key is Service


def test_register_singleton_twice_does_not_invoke_second_factory():
    locator = ServiceLocator()
    calls = []
    locator.register(str, lambda: "first", Lifetime.SINGLETON)

    with pytest.raises(DuplicateRegistrationError):
        locator.register(str, lambda: calls.append(1) or "second", Lifetime.SINGLETON)

    assert calls == []
    assert locator.get(str) == "first"


def test_register_transient_twice_last_factory_wins():
    locator = ServiceLocator()
    locator.register(str, lambda: "first", Lifetime.TRANSIENT)
    locator.register(str, lambda: "second", Lifetime.TRANSIENT)

    assert locator.get(str) == "second"


def test_register_transient_over_singleton_raises():
    locator = ServiceLocator()
    locator.register(str, lambda: "singleton", Lifetime.SINGLETON)

    with pytest.raises(DuplicateRegistrationError):
        locator.register(str, lambda: "transient", Lifetime.TRANSIENT)

    assert locator.get(str) == "singleton"


def test_register_singleton_over_transient_replaces_it():
    locator = ServiceLocator()

    class Service: ...

    locator.register(Service, Service, Lifetime.TRANSIENT)
    locator.register(Service, Service, Lifetime.SINGLETON)

    assert locator.get(Service) is locator.get(Service)


def test_try_register_keeps_first_registration():
    locator = ServiceLocator()
    locator.try_register(str, lambda: "FirstService", Lifetime.SINGLETON)
    locator.try_register(str, lambda: "SecondService", Lifetime.SINGLETON)

    assert locator.get(str) == "FirstService"


def test_try_register_does_not_replace_transient():
    locator = ServiceLocator()
    calls = []
    locator.register(str, lambda: "first")

    locator.try_register(str, lambda: calls.append(1) or "second", Lifetime.SINGLETON)

    assert locator.get(str) == "first"
    assert calls == []


def test_try_register_registers_when_absent():
    locator = ServiceLocator()

    result = locator.try_register(int, lambda: 3)

    assert result is locator
    assert locator.get(int) == 3


def test_try_register_ignores_named_registrations():
    locator = ServiceLocator()
    locator.register(str, lambda: "named", name="svc")

    locator.try_register(str, lambda: "typed")

    assert locator.get(str) == "typed"


def test_register_type_builds_token_itself():
    locator = ServiceLocator()

    class ConcreteService: ...

    locator.register_type(ConcreteService)

    s1 = locator.get(ConcreteService)
    s2 = locator.get(ConcreteService)
    assert isinstance(s1, ConcreteService)
    assert s1 is not s2


def test_register_type_singleton_builds_at_registration():
    locator = ServiceLocator()
    built = []

    class ConcreteService:
        def __init__(self):
            built.append(self)

    locator.register_type(ConcreteService, lifetime=Lifetime.SINGLETON)

    assert len(built) == 1
    assert locator.get(ConcreteService) is built[0]


def test_register_type_accepts_lifetime_positionally():
    locator = ServiceLocator()

    class ConcreteService: ...

    locator.register_type(ConcreteService, Lifetime.SINGLETON)

    assert locator.get(ConcreteService) is locator.get(ConcreteService)


def test_register_type_with_implementation_in_lifetime_slot_raises_type_error():
    locator = ServiceLocator()

    class Base: ...

    class Derived(Base): ...

    with pytest.raises(TypeError) as ctx:
        locator.register_type(Base, Derived)

    assert "impl=" in str(ctx.value)
    assert not locator.lookup(Base)


def test_register_type_with_derived_impl():
    locator = ServiceLocator()

    class Base: ...

    class Derived(Base): ...

    locator.register_type(Base, impl=Derived)

    assert isinstance(locator.get(Base), Derived)


def test_register_type_with_unrelated_impl_raises_type_error():
    locator = ServiceLocator()

    class Base: ...

    class Unrelated: ...

    with pytest.raises(TypeError):
        locator.register_type(Base, impl=Unrelated)


def test_register_type_with_structural_protocol_impl():
    locator = ServiceLocator()

    class Repo(Protocol):
        def get(self, key) -> int: ...

    class RepoImpl:
        def get(self, key) -> int:
            return 1

    locator.register_type(Repo, impl=RepoImpl)

    assert locator.get(Repo).get("a") == 1


def test_register_type_protocol_impl_missing_member_raises_type_error():
    locator = ServiceLocator()

    @runtime_checkable
    class Repo(Protocol):
        def get(self) -> int: ...
        def put(self, value: int) -> None: ...

    class PartialRepo:
        def get(self) -> int:
            return 1

    with pytest.raises(TypeError) as ctx:
        locator.register_type(Repo, impl=PartialRepo)

    assert "put" in str(ctx.value)


def test_register_type_protocol_impl_with_fewer_args_raises_type_error():
    locator = ServiceLocator()

    class SupportsFoo(Protocol):
        def foo(self, a, b) -> int: ...

    class BadImpl:
        def foo(self, a) -> int: ...

    with pytest.raises(TypeError):
        locator.register_type(SupportsFoo, impl=BadImpl)
