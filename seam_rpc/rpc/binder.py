"""
Parameter Binding

Converts a request's ``params`` (array, object or absent) into the positional
argument list for a resolved procedure.
"""

from typing import Any, List, Sequence

from seam_rpc.rpc.errors import ErrorCode, RpcError


class _Missing:
    """Placeholder for a declared parameter the caller did not supply.

    A single shared instance; it survives copying so snapshots taken for
    deferred notifications still compare identical to ``MISSING``.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


def _pad(args: List[Any], param_names: Sequence[str]) -> List[Any]:
    if len(param_names) > len(args):
        args.extend(MISSING for _ in range(len(param_names) - len(args)))
    return args


def bind_params(params: Any, param_names: Sequence[str]) -> List[Any]:
    """Build the positional argument list for a call

    Arrays are used as given and padded with MISSING up to the declared count;
    extra positional arguments are passed through. Objects are mapped onto the
    declared names in order, ignoring unknown keys. Absent params behave like
    an empty array.

    Args:
        params: The request's params member, or None when absent
        param_names: The procedure's declared formal parameter names

    Returns:
        List: Positional arguments (a new list; ``params`` is not modified)

    Raises:
        RpcError: InvalidParams when an object is sent to a positional-only procedure
    """
    if isinstance(params, list):
        return _pad(list(params), param_names)

    if isinstance(params, dict):
        if not param_names:
            raise RpcError(ErrorCode.InvalidParams,
                           "Service does not allow a parameter map")
        return [params.get(name, MISSING) for name in param_names]

    return _pad([], param_names)
