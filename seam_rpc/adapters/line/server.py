"""
Line Server Adapter

asyncio TCP server. Each newline-terminated line is handed to the engine and
each non-null result is written back as one line. Requests on a connection are
processed strictly one after another.
"""

import asyncio
import logging
import threading
import time

from seam_rpc.adapters.adapter_interface import ServerAdapterInterface
from seam_rpc.telemetry.metrics import increment_counter, record_latency

logger = logging.getLogger(__name__)

# Longest accepted request line
DEFAULT_LINE_LIMIT = 1024 * 1024


class LineServer(ServerAdapterInterface):
    """
    Newline-framed TCP server hosting a JsonRpcServer engine
    """

    def __init__(self,
                 engine,
                 host: str = "127.0.0.1",
                 port: int = 9999,
                 line_limit: int = DEFAULT_LINE_LIMIT):
        """Initialize line server
        
        Args:
            engine: JsonRpcServer processing each request line
            host: Interface to listen on
            port: TCP port; 0 picks a free port, available as ``port`` once started
            line_limit: Maximum request line length in bytes
        """
        super().__init__(engine)
        self.host = host
        self.port = port
        self.line_limit = line_limit
        self.running = False
        self._loop = None
        self._stopping = None
        self._ready = threading.Event()
        self._writers = set()
        self._startup_error = None
        self.server_thread = None

    def start(self, threaded: bool = True):
        """Start server
        
        Args:
            threaded: Whether to run in a separate thread
        """
        self.running = True
        self._ready.clear()
        self._startup_error = None

        if threaded:
            self.server_thread = threading.Thread(target=self._run_server, daemon=True)
            self.server_thread.start()
            if not self._ready.wait(timeout=5.0):
                raise RuntimeError(f"Line server did not start on {self.host}:{self.port}")
            if self._startup_error is not None:
                raise ConnectionError(f"Cannot listen on {self.host}:{self.port}: {self._startup_error}")
            logger.info("Line server started in background thread")
        else:
            logger.info("Line server started in main thread")
            self._run_server()
            if self._startup_error is not None:
                raise ConnectionError(f"Cannot listen on {self.host}:{self.port}: {self._startup_error}")

    def stop(self):
        """Stop server"""
        self.running = False
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._stopping.set)
        if self.server_thread is not None:
            self.server_thread.join(timeout=2.0)
            self.server_thread = None
            logger.info("Line server stopped")

    def _run_server(self):
        asyncio.run(self.serve())

    async def serve(self):
        """Accept connections until ``stop`` is called"""
        self._loop = asyncio.get_running_loop()
        self._stopping = asyncio.Event()

        try:
            server = await asyncio.start_server(
                self._handle_connection, self.host, self.port, limit=self.line_limit
            )
        except OSError as e:
            logger.error(f"Cannot listen on {self.host}:{self.port}: {e}")
            self._startup_error = e
            self._ready.set()
            return
        self.port = server.sockets[0].getsockname()[1]
        increment_counter("rpc.server.started", 1)
        logger.info(f"Line server listening on {self.host}:{self.port}")
        self._ready.set()

        try:
            await self._stopping.wait()
        finally:
            server.close()
            for writer in list(self._writers):
                writer.close()
            await server.wait_closed()

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer = writer.get_extra_info("peername")
        self._writers.add(writer)
        increment_counter("rpc.server.connections", 1)
        logger.info(f"Client connected: {peer}")

        try:
            while self.running:
                try:
                    line = await reader.readline()
                except ValueError:
                    logger.error(f"Request line from {peer} exceeds {self.line_limit} bytes, closing")
                    increment_counter("rpc.server.errors", 1, {"type": "line_too_long"})
                    break

                if not line:
                    break
                if not line.strip():
                    continue

                start_time = time.time()
                logger.debug(f"Received request: {line[:200]!r}...")
                response = self.engine.process_request(line)

                if response is not None:
                    writer.write(response.encode("utf-8") + b"\n")
                    await writer.drain()
                    latency_ms = (time.time() - start_time) * 1000
                    record_latency("rpc.server.transport.latency", latency_ms, {"adapter": "line"})
                    logger.debug(f"Sent response, took: {latency_ms:.2f}ms")

        except ConnectionError as e:
            logger.warning(f"Connection to {peer} lost: {e}")

        finally:
            self._writers.discard(writer)
            writer.close()
            logger.info(f"Client disconnected: {peer}")
