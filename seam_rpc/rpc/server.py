"""
JSON-RPC 2.0 Batch Engine

Entry point of the engine: raw JSON text in, response text (or None) out.
Each request of a batch is validated, resolved, bound and dispatched in input
order; notifications are dropped from the output and executed afterwards.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Union

from seam_rpc.rpc.binder import MISSING, bind_params
from seam_rpc.rpc.dispatcher import Dispatcher, NotificationScheduler, PendingCall
from seam_rpc.rpc.errors import ErrorCode, ErrorValue, RpcError, error_response, result_response
from seam_rpc.rpc.resolver import ProcedureDescriptor, as_resolver
from seam_rpc.rpc.validator import is_notification, request_id, validate_request
from seam_rpc.telemetry.metrics import increment_counter, record_latency

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def _encode_default(value: Any) -> Any:
    if value is MISSING:
        return None
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def decode(json_input: Union[str, bytes, bytearray]) -> Any:
    """Decode request text, refusing the non-standard NaN/Infinity constants

    Raises:
        ValueError: Invalid UTF-8 or invalid JSON
        TypeError: Input is not text
        RecursionError: Input nested deeper than the decoder can follow
    """
    if isinstance(json_input, (bytes, bytearray)):
        json_input = json_input.decode("utf-8")
    return json.loads(json_input, parse_constant=_reject_constant)


def _code_label(code: Any) -> str:
    return str(int(code)) if isinstance(code, int) else str(code)


def encode(response: Dict[str, Any]) -> str:
    return json.dumps(response, default=_encode_default, allow_nan=False)


class JsonRpcServer:
    """
    Transport-agnostic JSON-RPC 2.0 request processor
    
    Args:
        resolver: A Resolver, or a callable ``(name, error) -> ProcedureDescriptor | None``
        scheduler: Where notifications run; a ThreadedScheduler by default

    Raises:
        TypeError: No usable resolver was given
    """

    def __init__(self, resolver, scheduler: Optional[NotificationScheduler] = None):
        self.resolver = as_resolver(resolver)
        self.dispatcher = Dispatcher(scheduler)

    def close(self):
        """Stop the notification scheduler"""
        self.dispatcher.close()

    def process_request(self, json_input: Union[str, bytes, bytearray]) -> Optional[str]:
        """Process one request or a batch of requests
        
        Args:
            json_input: JSON text of a request object or a batch array
            
        Returns:
            str: The serialized response object (single mode) or array (batch mode)
            None: Nothing must be sent; every request was a notification
        """
        start_time = time.time()

        try:
            requests = decode(json_input)
        except (ValueError, TypeError, RecursionError) as e:
            logger.debug(f"Could not parse request: {e}")
            return self._reject(ErrorValue(ErrorCode.ParseError, "Could not parse request"))

        if isinstance(requests, list):
            batch = True
            if not requests:
                return self._reject(ErrorValue(ErrorCode.InvalidRequest, "Empty batch array"))
        elif isinstance(requests, dict):
            batch = False
            requests = [requests]
        else:
            return self._reject(ErrorValue(ErrorCode.InvalidRequest,
                                           "Unrecognized request type",
                                           "Expected an array or an object"))

        increment_counter("rpc.server.requests.received", len(requests),
                          {"mode": "batch" if batch else "single"})

        notifications: List[PendingCall] = []
        entries = []
        for request in requests:
            entry = self._process_one(request, notifications)
            if entry is not None:
                entries.append(self._serialize_entry(entry))

        if not entries:
            response = None
        elif batch:
            response = "[" + ", ".join(entries) + "]"
        else:
            response = entries[0]

        self.dispatcher.defer(notifications)

        record_latency("rpc.server.request.latency", (time.time() - start_time) * 1000,
                       {"mode": "batch" if batch else "single"})
        return response

    def _reject(self, error: ErrorValue) -> str:
        """Answer the whole input with one error object; no batch wrapping"""
        increment_counter("rpc.server.errors", 1, {"code": _code_label(error.code)})
        return encode(error_response(None, error))

    def _process_one(self, request: Any, notifications: List[PendingCall]) -> Optional[Dict[str, Any]]:
        """Produce the response entry for one request, or None for a notification"""
        identity = request_id(request)
        try:
            validate_request(request)
        except RpcError as e:
            logger.debug(f"Invalid request {identity!r}: {e.error!r}")
            return self._error_entry(identity, e.error)

        notification = is_notification(request)
        method = request["method"]

        try:
            error = ErrorValue()
            descriptor = self._resolve(method, error)
            if descriptor is None:
                if notification:
                    logger.debug(f"Dropping notification for unresolved method {method}")
                    return None
                return self._error_entry(identity, error)

            try:
                args = bind_params(request.get("params"), descriptor.param_names)
            except RpcError as e:
                if notification:
                    logger.debug(f"Dropping notification {method}: {e}")
                    return None
                return self._error_entry(identity, e.error)

            pending = PendingCall.capture(method, descriptor, args, error)
            if notification:
                notifications.append(pending)
                return None

            outcome = self.dispatcher.call(pending)
        except Exception as e:
            logger.exception(f"Unexpected failure while processing {method}")
            if notification:
                return None
            outcome = ErrorValue(ErrorCode.InternalError, f"Internal error: {type(e).__name__}: {e}")

        if isinstance(outcome, ErrorValue):
            return self._error_entry(identity, outcome)
        return result_response(identity, outcome)

    def _resolve(self, method: str, error: ErrorValue) -> Optional[ProcedureDescriptor]:
        try:
            descriptor = self.resolver.resolve(method, error)
        except Exception as e:
            logger.exception(f"Resolver failed for {method}")
            error.code = ErrorCode.InternalError
            error.message = f"Resolver threw an error: {type(e).__name__}: {e}"
            error.data = None
            return None

        if descriptor is None:
            # Untouched error: the resolver gave no reason
            if error.code == ErrorCode.InvalidRequest and error.message == "Unspecified error":
                error.code = ErrorCode.MethodNotFound
                error.message = f"Method not found: {method}"
            return None

        if not isinstance(descriptor, ProcedureDescriptor):
            if not callable(descriptor):
                raise TypeError(f"Resolver returned {type(descriptor).__name__} for {method}")
            descriptor = ProcedureDescriptor(descriptor)
        return descriptor

    def _error_entry(self, identity: Any, error: ErrorValue) -> Dict[str, Any]:
        increment_counter("rpc.server.errors", 1, {"code": _code_label(error.code)})
        return error_response(identity, error)

    def _serialize_entry(self, entry: Dict[str, Any]) -> str:
        try:
            return encode(entry)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Response for id {entry['id']!r} is not JSON serializable: {e}")
            error = ErrorValue(ErrorCode.InternalError, f"Result is not JSON serializable: {e}")
            return encode(self._error_entry(entry["id"], error))
