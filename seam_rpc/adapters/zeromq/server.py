"""
ZeroMQ Server Adapter

Hosts a JsonRpcServer engine behind a REP socket. REQ/REP requires a reply to
every message, so an empty frame stands in for "no response".
"""

import zmq
import logging
import threading
import time

from seam_rpc.adapters.adapter_interface import ServerAdapterInterface
from seam_rpc.telemetry.metrics import record_latency, increment_counter

logger = logging.getLogger(__name__)

# Reply sent when the engine produced nothing (all notifications)
EMPTY_REPLY = b""

class ZeroMQServer(ServerAdapterInterface):
    """
    ZeroMQ server adapter implementing JSON-RPC 2.0 semantics
    """
    
    def __init__(self, engine, bind_address: str = "tcp://*:5555"):
        """Initialize ZeroMQ server
        
        Args:
            engine: JsonRpcServer processing each request
            bind_address: Request socket bind address
        """
        super().__init__(engine)
        self.bind_address = bind_address
        self.running = False
        self.server_thread = None
        self._started = False
        self.context = zmq.Context()
        
        self.socket = self.context.socket(zmq.REP)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.bind(bind_address)
        
        increment_counter("rpc.server.started", 1)
        
        logger.info(f"ZeroMQ server bound to {bind_address}")
    
    def start(self, threaded: bool = True):
        """Start server
        
        Args:
            threaded: Whether to run in a separate thread
        """
        self.running = True
        self._started = True
        
        if threaded:
            self.server_thread = threading.Thread(target=self._run_server)
            self.server_thread.daemon = True
            self.server_thread.start()
            logger.info("ZeroMQ server started in background thread")
        else:
            logger.info("ZeroMQ server started in main thread")
            self._run_server()
    
    def stop(self):
        """Stop server; the sockets are released once the loop exits"""
        self.running = False
        if self.server_thread is not None:
            self.server_thread.join(timeout=1.0)
            self.server_thread = None
            logger.info("ZeroMQ server stopped")
        if not self._started:
            self._close()
    
    def _close(self):
        if self.socket is not None:
            self.socket.close()
            self.socket = None
        if self.context is not None:
            self.context.term()
            self.context = None
    
    def _run_server(self):
        """Server main loop"""
        logger.info("ZeroMQ server started receiving requests")
        try:
            self._serve_loop()
        finally:
            self._close()
    
    def _serve_loop(self):
        while self.running:
            try:
                request_bytes = self.socket.recv(flags=zmq.NOBLOCK)
                
            except zmq.error.Again:
                # No message, continue loop
                time.sleep(0.001)
                continue
                
            except zmq.error.ZMQError as e:
                if not self.running:
                    break
                logger.error(f"Error occurred in server loop: {str(e)}")
                increment_counter("rpc.server.errors", 1, {"type": "loop_error"})
                time.sleep(1.0)
                continue
            
            start_time = time.time()
            logger.debug(f"Received request: {request_bytes[:200]}...")
            
            response = self.engine.process_request(request_bytes)
            reply = EMPTY_REPLY if response is None else response.encode('utf-8')
            self.socket.send(reply)
            
            latency_ms = (time.time() - start_time) * 1000
            record_latency("rpc.server.transport.latency", latency_ms, {"adapter": "zeromq"})
            logger.debug(f"Sent response, took: {latency_ms:.2f}ms")
