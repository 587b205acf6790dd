"""
Composite Backend - Routes each operation to the first capable child

Lets an application wire, say, LocalBackend + HttpxBackend + SqliteBackend
and hand out a single IoFacade.
"""

from typing import List, Set

from extio.base import OPERATIONS, IoCapability, IoFacade, OperationSpec
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.composite')


class CompositeBackendError(ExtioError):
    """Errors raised by CompositeBackend (child errors are kept as cause)"""


class CompositeBackend(IoFacade):
    """
    Combine several backends behind one facade.

    Routing is fixed at construction: for every operation the first child
    (in the given order) that supports it handles it. Child failures are
    re-raised as CompositeBackendError with the same kind, so callers still
    see one error type.
    """

    Error = CompositeBackendError

    def __init__(self, backends: List[IoFacade]):
        if not backends:
            raise ValueError("CompositeBackend needs at least one backend")
        self.backends = list(backends)

        self._routes = {}
        for capability in IoCapability:
            for backend in self.backends:
                if backend.supports(capability):
                    self._routes[capability] = backend
                    break

        logger.info(
            f"Composite backend initialized "
            f"({len(self.backends)} backends, {len(self._routes)} operations routed)"
        )

    def capabilities(self) -> Set[IoCapability]:
        return set(self._routes)

    def route(self, capability: IoCapability) -> IoFacade:
        """Backend that handles an operation"""
        backend = self._routes.get(capability)
        if backend is None:
            raise self._unsupported(capability.value)
        return backend

    def _wrap(self, operation: str, error: ExtioError) -> CompositeBackendError:
        return self.Error(
            error.message,
            kind=error.kind,
            operation=operation,
            backend=error.backend or error.__class__.__name__,
            cause=error
        )


def _delegate(spec: OperationSpec):
    name = spec.name

    if spec.suspends:
        async def method(self, *args, **kwargs):
            backend = self.route(spec.capability)
            try:
                return await getattr(backend, name)(*args, **kwargs)
            except ExtioError as e:
                raise self._wrap(name, e) from e
    else:
        def method(self, *args, **kwargs):
            backend = self.route(spec.capability)
            try:
                return getattr(backend, name)(*args, **kwargs)
            except ExtioError as e:
                raise self._wrap(name, e) from e

    method.__name__ = name
    method.__qualname__ = f"CompositeBackend.{name}"
    method.__doc__ = getattr(IoFacade, name).__doc__
    return method


for _spec in OPERATIONS.values():
    setattr(CompositeBackend, _spec.name, _delegate(_spec))
del _spec


# Register backend
BackendFactory.register("composite", CompositeBackend)
