from __future__ import annotations

import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    get_type_hints,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._locator import ServiceLocator

    T = TypeVar("T")


@dataclass(frozen=True)
class Dependency:
    """One constructor parameter the resolver has to supply."""

    name: str
    annotation: Any = inspect.Parameter.empty
    default: Any = inspect.Parameter.empty
    positional_only: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


class ConstructorIntrospector(Protocol):
    def dependencies(self, cls: type) -> list[Dependency]: ...

    def construct(self, cls: type[T], arguments: Mapping[str, object]) -> T: ...


class SignatureIntrospector:
    """Introspects `__init__` through `inspect.signature` and `typing.get_type_hints`.

    Python classes have a single `__init__`; when neither the class nor any base
    other than `object` defines one, or the inherited one is implemented in C
    and has no readable signature, the class is built with no arguments.
    `*args` and `**kwargs` are never filled.
    """

    def dependencies(self, cls: type) -> list[Dependency]:
        sig = _init_signature(cls)
        if sig is None:
            return []

        hints = _get_init_type_hints(cls)
        deps: list[Dependency] = []
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            ann = hints.get(name, p.annotation)
            if isinstance(ann, str):
                # unresolved forward reference
                ann = inspect.Parameter.empty

            deps.append(
                Dependency(
                    name=name,
                    annotation=_unwrap_optional(ann),
                    default=p.default,
                    positional_only=p.kind is p.POSITIONAL_ONLY,
                )
            )
        return deps

    def construct(self, cls: type[T], arguments: Mapping[str, object]) -> T:
        sig = _init_signature(cls)
        if sig is None:
            return cls()

        params = sig.parameters
        args: list[object] = []
        kwargs: dict[str, object] = {}
        for name, p in params.items():
            if name not in arguments:
                continue
            if p.kind is p.POSITIONAL_ONLY:
                args.append(arguments[name])
            else:
                kwargs[name] = arguments[name]

        return cls(*args, **kwargs)


class Constructor:
    """Builds a class by resolving each constructor parameter from a locator.

    Lookups are non-throwing: a parameter whose annotation is not registered
    receives its default, or `None` when it has none.
    """

    def __init__(self, locator: ServiceLocator, introspector: ConstructorIntrospector) -> None:
        self._locator = locator
        self._introspector = introspector

    def construct(self, cls: type[T]) -> T:
        arguments = {dep.name: self._resolve_dependency(cls, dep) for dep in self._introspector.dependencies(cls)}
        return self._introspector.construct(cls, arguments)

    def _resolve_dependency(self, cls: type, dep: Dependency) -> object:
        if dep.annotation is not inspect.Parameter.empty:
            result = self._locator.lookup(dep.annotation)
            if result:
                return result.unwrap()

        if dep.has_default:
            return dep.default

        logger.debug(
            "No registration satisfies parameter '%s' of %s (annotation: %s); passing None",
            dep.name,
            cls.__qualname__,
            _annotation_name(dep.annotation),
        )
        return None


def _init_signature(cls: type) -> inspect.Signature | None:
    """Signature used to build `cls`, or `None` when it takes no introspectable arguments.

    Classes inheriting a C-level `__init__` (`Exception`, `dict` subclasses) have
    no signature `inspect` can read; they are built with no arguments.
    """
    if cls.__init__ is object.__init__:
        return None

    try:
        return inspect.signature(cls)
    except (TypeError, ValueError):
        logger.debug("No introspectable constructor for %s; building it without arguments", cls.__qualname__)
        return None


def _unwrap_optional(ann: Any) -> Any:
    """Map `X | None` and `Optional[X]` to `X`; leave other annotations alone."""
    if typing.get_origin(ann) not in (typing.Union, types.UnionType):
        return ann

    args = [a for a in typing.get_args(ann) if a is not type(None)]
    if len(args) == 1:
        return args[0]
    return ann


def _annotation_name(ann: Any) -> str:
    if ann is inspect.Parameter.empty:
        return "no-annotation"
    return getattr(ann, "__name__", repr(ann))


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
