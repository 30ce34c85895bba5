"""
ZeroMQ Client Adapter

REQ socket client. A timed-out REQ socket cannot send again, so it is
replaced before the timeout is reported.
"""

import zmq
import json
import time
import logging
from typing import Dict, Any, List, Optional

from seam_rpc.adapters.adapter_interface import ClientAdapterInterface
from seam_rpc.telemetry.metrics import record_latency, increment_counter

logger = logging.getLogger(__name__)

class ZeroMQClient(ClientAdapterInterface):
    """
    ZeroMQ client adapter implementing JSON-RPC 2.0 semantics
    """
    
    def __init__(self, 
                 server_address: str = "tcp://localhost:5555", 
                 timeout_ms: int = 5000):
        """Initialize ZeroMQ client
        
        Args:
            server_address: ZeroMQ server address
            timeout_ms: Request timeout (milliseconds)
        """
        super().__init__()
        self.server_address = server_address
        self.timeout_ms = timeout_ms
        self.context = zmq.Context()
        self.socket = None
        self._connect()
        logger.info(f"ZeroMQ client connected to {server_address}")
    
    def _connect(self):
        self.socket = self.context.socket(zmq.REQ)
        self.socket.setsockopt(zmq.RCVTIMEO, self.timeout_ms)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.connect(self.server_address)
    
    def close(self):
        """Close client connection"""
        if self.socket is not None:
            self.socket.close()
            self.socket = None
        if self.context is not None:
            self.context.term()
            self.context = None
    
    def send_raw(self, text: str) -> Optional[str]:
        """Send one message and wait for the reply
        
        Returns:
            str: Response text, or None when the server had nothing to send
            
        Raises:
            TimeoutError: Request timed out
            ConnectionError: Connection failed
        """
        if self.socket is None:
            raise ConnectionError("Client is closed")

        start_time = time.time()
        try:
            self.socket.send(text.encode('utf-8'))
            reply = self.socket.recv()
            
        except zmq.error.Again:
            latency_ms = (time.time() - start_time) * 1000
            logger.error(f"Request timeout, waited {latency_ms:.2f}ms")
            increment_counter("rpc.client.errors", 1, {"type": "timeout"})
            self.socket.close()
            self._connect()
            raise TimeoutError(f"ZeroMQ request timeout ({self.timeout_ms}ms)")
            
        except zmq.error.ZMQError as e:
            logger.error(f"ZeroMQ error: {str(e)}")
            increment_counter("rpc.client.errors", 1, {"type": "zmq_error"})
            raise ConnectionError(f"ZeroMQ connection error: {str(e)}")
        
        record_latency("rpc.client.latency", (time.time() - start_time) * 1000)
        return reply.decode('utf-8') if reply else None
    
    def call(self, method: str, params: Any = None) -> Dict[str, Any]:
        """Send JSON-RPC 2.0 request and wait for response
        
        Args:
            method: Method name to call
            params: Method parameters
            
        Returns:
            Dict: JSON-RPC response object
            
        Raises:
            TimeoutError: Request timeout
            ConnectionError: Connection failed
            ValueError: Invalid response
        """
        request = self.make_request(method, params)
        increment_counter("rpc.client.requests", 1, {"method": method})
        
        reply = self.send_raw(json.dumps(request))
        if reply is None:
            raise ValueError(f"No response to request {request['id']}")
        
        response = self.check_response(json.loads(reply), request["id"])
        if "error" in response:
            error = response["error"]
            logger.warning(f"RPC call error: {error.get('message')}, code: {error.get('code')}")
            increment_counter("rpc.client.errors", 1, {
                "type": "rpc_error",
                "method": method,
                "code": str(error.get('code', -1))
            })
        else:
            increment_counter("rpc.client.success", 1, {"method": method})
        
        return response
    
    def notify(self, method: str, params: Any = None) -> None:
        self.send_raw(json.dumps(self.make_notification(method, params)))
        increment_counter("rpc.client.notifications", 1, {"method": method})
    
    def batch(self, requests: List[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
        reply = self.send_raw(json.dumps(requests))
        if reply is None:
            return None
        
        responses = json.loads(reply)
        if not isinstance(responses, list):
            return [self.check_response(responses)]
        return [self.check_response(response) for response in responses]
