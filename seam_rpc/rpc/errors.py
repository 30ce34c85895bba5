"""
JSON-RPC 2.0 Error Model

Defines the fixed table of protocol error codes and the structured error value
that procedures, resolvers and the engine use to report failures on the wire.
"""

from enum import IntEnum
from typing import Any, Dict


class ErrorCode(IntEnum):
    """Protocol error codes. The values are part of the wire contract."""

    # Invalid JSON was received by the server
    ParseError = -32700
    # The JSON received is not a valid Request object
    InvalidRequest = -32600
    # The method does not exist or its name is illegal
    MethodNotFound = -32601
    # The parameters do not match what the procedure can accept
    InvalidParams = -32602
    # The procedure failed while executing
    InternalError = -32603

    # -32099 to -32000 are reserved for implementation-defined server errors.
    # Not raised by the engine; available to resolvers and procedures.
    PermissionDenied = -32000


class ErrorValue:
    """Structured error carrier: numeric code, message, optional data.

    An instance is handed to the resolver and, as the trailing argument, to
    every procedure. Either may populate it and hand it back to signal an
    application error without raising.
    """

    def __init__(self,
                 code: int = ErrorCode.InvalidRequest,
                 message: str = "Unspecified error",
                 data: Any = None):
        self.code = code
        self.message = message
        self.data = data

    def serialize(self) -> Dict[str, Any]:
        """Convert to the wire representation of a JSON-RPC error member

        Returns:
            Dict: ``code`` and ``message``, plus ``data`` when it is not None
        """
        error = {
            "code": int(self.code) if isinstance(self.code, int) else self.code,
            "message": self.message
        }
        if self.data is not None:
            error["data"] = self.data
        return error

    def __repr__(self) -> str:
        code = int(self.code) if isinstance(self.code, int) else self.code
        return f"ErrorValue(code={code!r}, message={self.message!r}, data={self.data!r})"


class RpcError(Exception):
    """Raised inside the engine when a request must be answered with an error.

    Never propagates out of ``JsonRpcServer.process_request``.
    """

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.error = ErrorValue(code, message, data)

    @property
    def code(self) -> int:
        return self.error.code


def error_response(request_id: Any, error: ErrorValue) -> Dict[str, Any]:
    """Create a JSON-RPC 2.0 error response

    Args:
        request_id: Request ID (None when it could not be determined)
        error: Error to report

    Returns:
        Dict: JSON-RPC 2.0 response object
    """
    return {"jsonrpc": "2.0", "id": request_id, "error": error.serialize()}


def result_response(request_id: Any, result: Any) -> Dict[str, Any]:
    """Create a JSON-RPC 2.0 success response"""
    return {"jsonrpc": "2.0", "id": request_id, "result": result}

