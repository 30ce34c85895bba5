"""
Communication Adapter Interfaces

Servers own a transport and feed every received message to a JsonRpcServer
engine; clients build JSON-RPC 2.0 requests and check the responses. Upper
layers code against these interfaces and stay unchanged when the transport
changes.
"""

import abc
import itertools
import threading
from typing import Dict, Any, List, Optional

JSONRPC_VERSION = "2.0"


class ClientAdapterInterface(abc.ABC):
    """Client adapter interface, defining methods all client adapters must implement"""

    def __init__(self):
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def next_id(self) -> str:
        with self._id_lock:
            return str(next(self._ids))

    def make_request(self, method: str, params: Any = None) -> Dict[str, Any]:
        """Build a call with a fresh id; params are omitted when None"""
        request = self.make_notification(method, params)
        request["id"] = self.next_id()
        return request

    @staticmethod
    def make_notification(method: str, params: Any = None) -> Dict[str, Any]:
        request = {"jsonrpc": JSONRPC_VERSION, "method": method}
        if params is not None:
            request["params"] = params
        return request

    @staticmethod
    def check_response(response: Any, request_id: Any = None) -> Dict[str, Any]:
        """Verify a decoded response object

        Args:
            response: Decoded response
            request_id: Expected id, or None to skip the id check

        Returns:
            Dict: The response

        Raises:
            ValueError: Not a JSON-RPC 2.0 response, or the id does not match
        """
        if not isinstance(response, dict) or response.get("jsonrpc") != JSONRPC_VERSION:
            raise ValueError(f"Invalid JSON-RPC 2.0 response: {response!r}")
        if ("result" in response) == ("error" in response):
            raise ValueError("Response must contain exactly one of 'result' and 'error'")
        if request_id is not None and response.get("id") != request_id:
            raise ValueError(f"Response ID mismatch: {response.get('id')} != {request_id}")
        return response

    @abc.abstractmethod
    def call(self, method: str, params: Any = None) -> Dict[str, Any]:
        """Send an RPC request and wait for the response
        
        Args:
            method: Method name to call
            params: Positional (list) or named (dict) parameters
            
        Returns:
            Dict: The JSON-RPC response object, which may carry an error
            
        Raises:
            TimeoutError: Request timed out
            ConnectionError: Connection failed
            ValueError: Invalid response
        """
        pass

    @abc.abstractmethod
    def notify(self, method: str, params: Any = None) -> None:
        """Send a notification; no response is expected"""
        pass

    @abc.abstractmethod
    def batch(self, requests: List[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
        """Send several requests as one batch
        
        Args:
            requests: Request objects, typically from make_request / make_notification
            
        Returns:
            List: Responses in server order, or None when every request was a notification
        """
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """Close connection and release resources"""
        pass


class ServerAdapterInterface(abc.ABC):
    """Server adapter interface, defining methods all server adapters must implement"""

    def __init__(self, engine):
        self.engine = engine

    @abc.abstractmethod
    def start(self, threaded: bool = True):
        """Start server
        
        Args:
            threaded: Whether to run in a separate thread
        """
        pass

    @abc.abstractmethod
    def stop(self):
        """Stop server"""
        pass
