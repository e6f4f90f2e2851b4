from __future__ import annotations

import inspect
import logging
import typing
from typing import TYPE_CHECKING, Protocol, TypeVar, cast


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from types import ModuleType

    T = TypeVar("T")


def find_implementations(base: type[T], *modules: ModuleType) -> list[type[T]]:
    """Return the concrete classes defined in `modules` that implement `base`.

    Classes are returned in module order, then declaration order. Classes merely
    imported into a module are skipped; abstract classes and Protocol classes
    never qualify. A concrete `base` defined in one of the modules is included,
    since it implements itself. Protocol bases are matched nominally through the
    MRO, so structural look-alikes are not picked up.
    """
    found: list[type[T]] = []
    for module in modules:
        for obj in vars(module).values():
            if not inspect.isclass(obj) or obj.__module__ != module.__name__:
                continue
            if inspect.isabstract(obj) or _is_protocol(obj):
                continue
            if _implements(obj, base):
                found.append(obj)

    logger.debug("Discovered %d implementation(s) of %s", len(found), base.__qualname__)
    return found


def ensure_implements(token: type, impl: type) -> None:
    """Raise `TypeError` unless `impl` can stand in for `token`.

    - For normal classes/ABCs: require issubclass(impl, token).
    - For Protocols: nominal conformance via the MRO, otherwise structural
      conformance (presence of members plus basic positional arity).
    """
    if not inspect.isclass(impl):
        msg = f"Implementation {impl!r} must be a class"
        raise TypeError(msg)

    if not _is_protocol(token):
        if not issubclass(impl, token):
            msg = f"Implementation {impl.__name__} must be a subclass of {token.__name__}"
            raise TypeError(msg)
        return

    if token in inspect.getmro(impl):
        return

    problems = _structural_mismatches(token, impl)
    if problems:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{token.__name__}: {'; '.join(problems)}"
        )
        raise TypeError(msg)


def _structural_mismatches(proto_cls: type, impl: type) -> list[str]:
    problems: list[str] = []

    try:
        proto_hints = typing.get_type_hints(proto_cls)
    except (NameError, TypeError):
        proto_hints = {}

    problems.extend(
        f"missing member: {name}" for name in proto_hints if not name.startswith("_") and not hasattr(impl, name)
    )

    for name, proto_attr in vars(proto_cls).items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        impl_attr = getattr(impl, name, None)
        if impl_attr is None:
            problems.append(f"missing member: {name}")
            continue
        if not callable(impl_attr):
            problems.append(f"{name}: not callable on {impl.__name__}")
            continue

        try:
            proto_arity = _positional_arity(inspect.signature(proto_attr))
            impl_arity = _positional_arity(inspect.signature(impl_attr))
        except (TypeError, ValueError) as e:
            problems.append(f"{name}: unable to compare signatures ({e})")
            continue

        if impl_arity < proto_arity:
            problems.append(
                f"{name}: impl has fewer required positional params ({impl_arity}) than protocol ({proto_arity})"
            )

    return problems


def _positional_arity(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        and p.default is p.empty
    )


def _implements(cls: type, base: type) -> bool:
    if _is_protocol(base):
        return base in inspect.getmro(cls)
    return issubclass(cls, base)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and issubclass(tp, cast("type", Protocol)) and getattr(tp, "_is_protocol", False)
