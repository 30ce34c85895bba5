"""
JSON-RPC 2.0 Engine Module

Provides the transport-independent request processing pipeline:
- errors: Error codes and the structured error value
- validator: Request envelope validation
- resolver: Method resolution interface and an in-memory registry
- binder: Positional/named parameter binding
- dispatcher: Call execution and deferred notification scheduling
- server: The batch engine entry point
"""

from .errors import ErrorCode, ErrorValue, RpcError
from .resolver import (
    ProcedureDescriptor,
    Resolver,
    FunctionResolver,
    ServiceRegistry
)
from .binder import MISSING, bind_params
from .dispatcher import (
    PendingCall,
    NotificationScheduler,
    InlineScheduler,
    AsyncioScheduler,
    ThreadedScheduler
)
from .server import JsonRpcServer

__all__ = [
    "ErrorCode",
    "ErrorValue",
    "RpcError",
    "ProcedureDescriptor",
    "Resolver",
    "FunctionResolver",
    "ServiceRegistry",
    "MISSING",
    "bind_params",
    "PendingCall",
    "NotificationScheduler",
    "InlineScheduler",
    "AsyncioScheduler",
    "ThreadedScheduler",
    "JsonRpcServer"
]
