"""
Line Client Adapter

Blocking socket client for the line server: requests are written as single
lines and responses read back line by line.
"""

import json
import logging
import socket
import time
from typing import Dict, Any, List, Optional

from seam_rpc.adapters.adapter_interface import ClientAdapterInterface
from seam_rpc.rpc.errors import RpcError
from seam_rpc.rpc.validator import validate_request
from seam_rpc.telemetry.metrics import record_latency, increment_counter

logger = logging.getLogger(__name__)


def expects_response(requests: List[Any]) -> bool:
    """Whether the server will answer a batch

    An empty batch, a request with an id, or an element with an invalid
    envelope each produce a response line.
    """
    if not requests:
        return True
    for request in requests:
        if isinstance(request, dict) and "id" in request:
            return True
        try:
            validate_request(request)
        except RpcError:
            return True
    return False


class LineClient(ClientAdapterInterface):
    """
    Newline-framed TCP client implementing JSON-RPC 2.0 semantics
    """

    def __init__(self,
                 host: str = "127.0.0.1",
                 port: int = 9999,
                 timeout_ms: int = 5000):
        """Initialize line client
        
        Args:
            host: Server host
            port: Server port
            timeout_ms: Connect and read timeout (milliseconds)

        Raises:
            ConnectionError: Server unreachable
        """
        super().__init__()
        self.host = host
        self.port = port
        self.timeout_ms = timeout_ms
        try:
            self.socket = socket.create_connection((host, port), timeout=timeout_ms / 1000)
        except OSError as e:
            raise ConnectionError(f"Cannot connect to {host}:{port}: {e}") from e
        self._stream = self.socket.makefile("rwb")
        logger.info(f"Line client connected to {host}:{port}")

    def close(self):
        """Close client connection"""
        if getattr(self, "_stream", None) is not None:
            self._stream.close()
            self._stream = None
        if getattr(self, "socket", None) is not None:
            self.socket.close()
            self.socket = None

    def send_raw(self, text: str, expect_response: bool = True) -> Optional[str]:
        """Send one line of text and optionally read one line back
        
        Args:
            text: Request text; must not contain a newline
            expect_response: Whether the server will answer
            
        Returns:
            str: The response line without its terminator, or None
            
        Raises:
            TimeoutError: No response in time
            ConnectionError: Connection closed or failed
        """
        if self._stream is None:
            raise ConnectionError("Client is closed")

        try:
            self._stream.write(text.encode("utf-8") + b"\n")
            self._stream.flush()
            if not expect_response:
                return None

            line = self._stream.readline()

        except socket.timeout:
            increment_counter("rpc.client.errors", 1, {"type": "timeout"})
            raise TimeoutError(f"Line request timed out ({self.timeout_ms}ms)")

        except OSError as e:
            increment_counter("rpc.client.errors", 1, {"type": "socket_error"})
            raise ConnectionError(f"Line connection error: {e}") from e

        if not line:
            raise ConnectionError("Server closed the connection")
        return line.decode("utf-8").rstrip("\r\n")

    def call(self, method: str, params: Any = None) -> Dict[str, Any]:
        """Send JSON-RPC 2.0 request and wait for response
        
        Args:
            method: Method name to call
            params: Positional (list) or named (dict) parameters
            
        Returns:
            Dict: JSON-RPC response object
        """
        request = self.make_request(method, params)
        start_time = time.time()

        increment_counter("rpc.client.requests", 1, {"method": method})
        response = json.loads(self.send_raw(json.dumps(request)))

        latency_ms = (time.time() - start_time) * 1000
        record_latency("rpc.client.latency", latency_ms, {"method": method})
        logger.debug(f"Received response, latency: {latency_ms:.2f}ms")

        self.check_response(response, request["id"])
        if "error" in response:
            error = response["error"]
            logger.warning(f"RPC call error: {error.get('message')}, code: {error.get('code')}")
            increment_counter("rpc.client.errors", 1, {"type": "rpc_error", "method": method})
        return response

    def notify(self, method: str, params: Any = None) -> None:
        """Send a notification; nothing is read back

        Raises:
            ValueError: The server would answer the notification with an error
        """
        notification = self.make_notification(method, params)
        try:
            validate_request(notification)
        except RpcError as e:
            raise ValueError(f"Invalid notification {method!r}: {e}") from e

        self.send_raw(json.dumps(notification), expect_response=False)
        increment_counter("rpc.client.notifications", 1, {"method": method})

    def batch(self, requests: List[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
        reply = self.send_raw(json.dumps(requests), expect_response=expects_response(requests))
        if reply is None:
            return None

        responses = json.loads(reply)
        if not isinstance(responses, list):
            # The server answered the whole batch with a single error
            return [self.check_response(responses)]
        return [self.check_response(response) for response in responses]
