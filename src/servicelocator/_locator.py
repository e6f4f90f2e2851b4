from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from ._constructor import Constructor, SignatureIntrospector
from ._discovery import ensure_implements, find_implementations
from ._errors import CircularDependencyError, DuplicateRegistrationError, NotRegisteredError, ResolutionError
from ._result import Found, NotFound


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from types import ModuleType

    from ._constructor import ConstructorIntrospector

    T = TypeVar("T")

    # Stored factories receive the locator that is resolving them
    Factory = Callable[["ServiceLocator"], object]


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ServiceLocator:
    """Process-local service registry.

    - register factories, instances or types (constructor injection)
    - lifetimes: singleton (built at registration) / transient (built per request)
    - named and tagged registrations
    - scopes: independent snapshots with overrides layered on top

    One re-entrant lock guards all four registration tables. Singleton factories
    run while it is held, so a slow singleton factory delays every other caller.
    """

    def __init__(
        self,
        *,
        detect_cycles: bool = True,
        introspector: ConstructorIntrospector | None = None,
    ) -> None:
        self._singletons: dict[Any, object] = {}  # token -> instance built at registration
        self._transients: dict[Any, Factory] = {}
        self._named: dict[str, Factory] = {}
        self._tagged: dict[str, list[Factory]] = {}
        self._lock = threading.RLock()
        self._detect_cycles = detect_cycles
        self._introspector = introspector or SignatureIntrospector()
        self._local = threading.local()

    def register(
        self,
        token: type[T],
        factory: Callable[[], T],
        lifetime: Lifetime = Lifetime.TRANSIENT,
        *,
        name: str | None = None,
    ) -> ServiceLocator:
        """Register a zero-argument factory for a type token, or under a name.

        Named registrations ignore `lifetime` and the type tables: the factory is
        invoked on every `get_named`.

        Example:
          locator.register(Clock, SystemClock, Lifetime.SINGLETON)
          locator.register(str, lambda: "primary", name="db-url")

        """
        if name is not None:
            with self._lock:
                self._named[name] = _ignore_locator(factory)
            logger.debug("Registered %s under name '%s'", _type_name(token), name)
            return self

        return self._register(token, _ignore_locator(factory), lifetime)

    def register_instance(
        self,
        instance: object,
        *,
        tags: Iterable[str] = (),
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> ServiceLocator:
        """Register a pre-built instance keyed by its runtime type.

        The same instance is also contributed to every tag in `tags`.
        """
        if isinstance(tags, str):
            tags = (tags,)

        with self._lock:
            self._register(type(instance), lambda _: instance, lifetime)
            for tag in tags:
                self._tagged.setdefault(tag, []).append(lambda _: instance)
        return self

    def register_type(
        self,
        token: type[T],
        lifetime: Lifetime = Lifetime.TRANSIENT,
        *,
        impl: type[T] | None = None,
    ) -> ServiceLocator:
        """Register `impl` (default: `token` itself) built through constructor injection.

        Example:
          locator.register_type(Clock, Lifetime.SINGLETON)
          locator.register_type(Notifier, impl=EmailNotifier)

        """
        if not isinstance(lifetime, Lifetime):
            msg = f"lifetime must be a Lifetime, got {lifetime!r}; pass an implementation as impl=..."
            raise TypeError(msg)

        concrete = token if impl is None else impl
        if concrete is not token:
            ensure_implements(token, concrete)

        return self._register(token, lambda locator: locator._construct(concrete), lifetime)  # noqa: SLF001

    def try_register(
        self,
        token: type[T],
        factory: Callable[[], T],
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceLocator:
        """Register only if `token` has neither a singleton nor a transient entry."""
        with self._lock:
            if token in self._singletons or token in self._transients:
                logger.debug("%s already registered; try_register skipped", _type_name(token))
                return self
            return self.register(token, factory, lifetime)

    def register_lazy(
        self,
        token: type[T],
        factory: Callable[[], T],
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceLocator:
        """Register a memoizing wrapper around `factory`.

        The wrapper builds its value on first call and returns it from then on,
        so even a transient lazy registration yields one shared value.
        """
        return self.register(token, _Lazy(factory), lifetime)

    def register_with_tag(
        self,
        token: type[T],
        factory: Callable[[], T],
        tag: str,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceLocator:
        """Register `factory` for `token` and contribute it to `tag`.

        The tag entry wraps the user factory independently of the type entry: a
        transient tagged service resolved through `get_by_tag` is a different
        instance from the one `get` returns.
        """
        with self._lock:
            self.register(token, factory, lifetime)
            self._tagged.setdefault(tag, []).append(_tag_factory(token, tag, factory))
        return self

    def register_implementations(
        self,
        base: type[T],
        *modules: ModuleType,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceLocator:
        """Register every concrete implementation of `base` found in `modules` under `base`.

        Each class goes through `register_type`, so the usual rules apply: with
        transient the last one discovered wins, with singleton a second
        implementation raises `DuplicateRegistrationError`.
        """
        with self._lock:
            for impl in find_implementations(base, *modules):
                self.register_type(base, lifetime, impl=impl)
        return self

    def _register(self, token: Any, factory: Factory, lifetime: Lifetime) -> ServiceLocator:
        with self._lock:
            if token in self._singletons:
                msg = f"{_type_name(token)} is already registered as a singleton."
                raise DuplicateRegistrationError(token, msg)

            if lifetime is Lifetime.SINGLETON:
                instance = factory(self)
                self._transients.pop(token, None)
                self._singletons[token] = instance
            else:
                self._transients[token] = factory

        logger.debug("Registered %s as %s", _type_name(token), lifetime.value)
        return self

    def lookup(self, token: type[T]) -> Found[T] | NotFound:
        """Resolve without raising: singleton first, then transient."""
        with self._lock:
            if token in self._singletons:
                return Found(self._singletons[token])

            factory = self._transients.get(token)
            if factory is not None:
                return Found(factory(self))

        return NotFound(token, f"Service of type {_type_name(token)} not registered.")

    def get(self, token: type[T]) -> T:
        return self.lookup(token).unwrap()

    def lookup_named(self, name: str) -> Found[Any] | NotFound:
        with self._lock:
            factory = self._named.get(name)
            if factory is not None:
                return Found(factory(self))

        return NotFound(name, f"Service named {name} not registered.")

    def get_named(self, name: str) -> Any:
        return self.lookup_named(name).unwrap()

    def get_or_default(self, token: type[T], default_factory: Callable[[], T] | None = None) -> T | None:
        """Resolve like `lookup`, falling back to `default_factory()` or `None`."""
        with self._lock:
            result = self.lookup(token)
            if result:
                return result.unwrap()
            return default_factory() if default_factory is not None else None

    def get_by_tag(self, tag: str) -> list[Any]:
        """Invoke every factory contributed to `tag`, in registration order."""
        with self._lock:
            factories = self._tagged.get(tag)
            if factories is None:
                msg = f"No services registered under tag: {tag}"
                raise NotRegisteredError(tag, msg)
            return [factory(self) for factory in factories]

    def create_scope(self, overrides: Mapping[type, Callable[[], object]] | None = None) -> ServiceLocator:
        """Snapshot the singleton and transient tables into an independent locator.

        Each override factory is invoked immediately and installed as a
        singleton, replacing whatever was copied for its token. Named and tagged
        registrations are not carried over.
        """
        scope = ServiceLocator(detect_cycles=self._detect_cycles, introspector=self._introspector)

        with self._lock:
            scope._singletons.update(self._singletons)
            scope._transients.update(self._transients)

        with scope._lock:
            for token, factory in (overrides or {}).items():
                scope._transients.pop(token, None)
                scope._singletons[token] = factory()

        logger.debug(
            "Created scope with %d singleton(s), %d transient(s), %d override(s)",
            len(scope._singletons),
            len(scope._transients),
            len(overrides or {}),
        )
        return scope

    def reset(self) -> None:
        """Drop every registration in this locator; scopes created earlier keep theirs."""
        with self._lock:
            self._singletons.clear()
            self._transients.clear()
            self._named.clear()
            self._tagged.clear()
        logger.debug("Registry reset")

    def _construct(self, cls: type[T]) -> T:
        constructor = Constructor(self, self._introspector)
        if not self._detect_cycles:
            return constructor.construct(cls)

        stack = self._construction_stack()
        if cls in stack:
            raise CircularDependencyError([*stack[stack.index(cls) :], cls])

        stack.append(cls)
        try:
            return constructor.construct(cls)
        finally:
            stack.pop()

    def _construction_stack(self) -> list[type]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack


class _Lazy:
    """Memoizing adapter: the wrapped factory runs at most once."""

    def __init__(self, factory: Callable[[], object]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._created = False
        self._value: object = None

    def __call__(self) -> object:
        if not self._created:
            with self._lock:
                if not self._created:
                    self._value = self._factory()
                    self._created = True
        return self._value


def _ignore_locator(factory: Callable[[], object]) -> Factory:
    return lambda _: factory()


def _tag_factory(token: type, tag: str, factory: Callable[[], object]) -> Factory:
    def produce(_: ServiceLocator) -> object:
        instance = factory()
        if instance is None:
            msg = f"Factory for {_type_name(token)} under tag '{tag}' returned None"
            raise ResolutionError(msg)
        return instance

    return produce


def _type_name(token: object) -> str:
    return getattr(token, "__qualname__", repr(token))
