"""Thread-safe, process-local service locator.

This package lets independent parts of a program register how to build a value
for a type (or under a name or tag) and retrieve instances later, choosing
between one shared instance and a fresh instance per request.

Exports:
- `ServiceLocator`: registry supporting factory, instance, type and tag
  registration, resolution by type/name/tag, scopes with overrides and reset.
- `Lifetime`: `SINGLETON` (built once, at registration) or `TRANSIENT`
  (built per request).
- `Found` / `NotFound`: results of the non-raising `lookup*` methods.
- `ConstructorIntrospector`, `SignatureIntrospector`, `Dependency`: the
  reflection seam used for constructor injection.
- `find_implementations`: scans modules for concrete implementations of a base
  type; used by `ServiceLocator.register_implementations`.
"""

from ._constructor import ConstructorIntrospector, Dependency, SignatureIntrospector
from ._discovery import find_implementations
from ._errors import CircularDependencyError, DuplicateRegistrationError, NotRegisteredError, ResolutionError
from ._locator import Lifetime, ServiceLocator
from ._result import Found, NotFound


__all__ = [
    "CircularDependencyError",
    "ConstructorIntrospector",
    "Dependency",
    "DuplicateRegistrationError",
    "Found",
    "Lifetime",
    "NotFound",
    "NotRegisteredError",
    "ResolutionError",
    "ServiceLocator",
    "SignatureIntrospector",
    "find_implementations",
]
