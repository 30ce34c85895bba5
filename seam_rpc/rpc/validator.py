"""
JSON-RPC 2.0 Request Validation

Checks one decoded request in a fixed order and stops at the first violation.
Naming violations are reported as MethodNotFound rather than InvalidRequest;
clients depend on that code.
"""

import re
from typing import Any

from seam_rpc.rpc.errors import ErrorCode, RpcError

JSONRPC_VERSION = "2.0"

# Dot-separated segments, each starting with a letter
METHOD_NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_.]*")


def request_id(request: Any) -> Any:
    """Best-effort id to echo in an error response for this request."""
    if isinstance(request, dict):
        return request.get("id")
    return None


def is_notification(request: Any) -> bool:
    return isinstance(request, dict) and "id" not in request


def validate_method_name(method: str) -> None:
    """Check a method name against the naming rules

    Raises:
        RpcError: MethodNotFound for an illegal character or a double dot
    """
    if not METHOD_NAME_PATTERN.fullmatch(method):
        raise RpcError(ErrorCode.MethodNotFound,
                       "Illegal character found in service name.")

    if ".." in method:
        raise RpcError(ErrorCode.MethodNotFound,
                       "Illegal use of two consecutive dots in service name.")


def validate_request(request: Any) -> None:
    """Validate the envelope of one decoded request

    Args:
        request: A decoded JSON value expected to be a request object

    Raises:
        RpcError: Describing the first rule the request violates
    """
    if not isinstance(request, dict):
        raise RpcError(ErrorCode.InvalidRequest,
                       "Unrecognized request",
                       "Expected an object")

    if "jsonrpc" not in request:
        raise RpcError(ErrorCode.InvalidRequest,
                       "JSON-RPC protocol version is missing.",
                       "Expected 'jsonrpc:\"2.0\"'")

    version = request["jsonrpc"]
    if not isinstance(version, str) or version != JSONRPC_VERSION:
        raise RpcError(ErrorCode.InvalidRequest,
                       "'jsonrpc' member must be \"2.0\".",
                       f"Found value {version!r} in 'jsonrpc'.")

    if not isinstance(request.get("method"), str):
        raise RpcError(ErrorCode.InvalidRequest,
                       "JSON-RPC method name is missing or incorrect type",
                       "Method name must be a string.")

    if "params" in request and not isinstance(request["params"], (list, dict)):
        raise RpcError(ErrorCode.InvalidRequest,
                       "JSON-RPC params is missing or incorrect type",
                       "params must be undefined, an object, or an array.")

    validate_method_name(request["method"])
