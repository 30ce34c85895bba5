"""
Method Resolution

The engine never looks procedures up itself. It asks a resolver to turn a
validated method name into a ProcedureDescriptor, which keeps namespacing and
registry policy out of the protocol layer.
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from seam_rpc.rpc.errors import ErrorCode, ErrorValue, RpcError
from seam_rpc.rpc.validator import validate_method_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcedureDescriptor:
    """A callable plus its declared formal parameter names.

    An empty ``param_names`` means positional-only: any number of positional
    arguments is accepted and a parameter map is refused.
    """

    procedure: Callable[..., Any]
    param_names: Tuple[str, ...] = ()

    @property
    def positional_only(self) -> bool:
        return not self.param_names

    def invoke(self, args: Sequence[Any], error: ErrorValue) -> Any:
        """Call the procedure with its bound arguments and the error builder"""
        return self.procedure(*args, error)


class Resolver(abc.ABC):
    """Interface between the engine and the application's procedure set"""

    @abc.abstractmethod
    def resolve(self, name: str, error: ErrorValue) -> Optional[ProcedureDescriptor]:
        """Locate the procedure for a method name

        Args:
            name: Fully qualified method name, already validated
            error: Error to populate when the name cannot be resolved

        Returns:
            ProcedureDescriptor, or None after populating ``error``
        """
        pass


class FunctionResolver(Resolver):
    """Adapts a plain ``(name, error) -> descriptor`` callable to Resolver"""

    def __init__(self, func: Callable[[str, ErrorValue], Optional[ProcedureDescriptor]]):
        self.func = func

    def resolve(self, name: str, error: ErrorValue) -> Optional[ProcedureDescriptor]:
        return self.func(name, error)


class ServiceRegistry(Resolver):
    """In-memory resolver mapping method names to registered procedures"""

    def __init__(self):
        self._services: Dict[str, ProcedureDescriptor] = {}

    def register(self,
                 name: str,
                 procedure: Callable[..., Any],
                 param_names: Sequence[str] = ()) -> ProcedureDescriptor:
        """Register a procedure under a method name

        Args:
            name: Method name, e.g. "math.subtract"
            procedure: Callable receiving the bound arguments followed by an ErrorValue
            param_names: Formal parameter names in order; empty for positional-only

        Returns:
            ProcedureDescriptor: The stored descriptor

        Raises:
            ValueError: The name could never be called
        """
        try:
            validate_method_name(name)
        except RpcError as e:
            raise ValueError(f"Invalid method name {name!r}: {e}") from e

        descriptor = ProcedureDescriptor(procedure, tuple(param_names))
        self._services[name] = descriptor
        logger.debug(f"Registered RPC method: {name} {list(descriptor.param_names)}")
        return descriptor

    def service(self, name: str, param_names: Sequence[str] = ()):
        """Decorator form of ``register``"""
        def decorator(func):
            self.register(name, func, param_names)
            return func

        return decorator

    def unregister(self, name: str) -> None:
        self._services.pop(name, None)

    def list_methods(self) -> List[str]:
        return sorted(self._services)

    def __contains__(self, name: str) -> bool:
        return name in self._services

    def resolve(self, name: str, error: ErrorValue) -> Optional[ProcedureDescriptor]:
        descriptor = self._services.get(name)
        if descriptor is None:
            error.code = ErrorCode.MethodNotFound
            error.message = f"Method not found: {name}"
        return descriptor


def as_resolver(resolver: Any) -> Resolver:
    """Accept a Resolver or a plain resolving callable

    Raises:
        TypeError: Neither was given
    """
    if isinstance(resolver, Resolver):
        return resolver
    if callable(resolver):
        return FunctionResolver(resolver)
    raise TypeError("Missing service resolver")
