"""
Seam RPC - JSON-RPC 2.0 Request Processing Engine

This package provides a transport-agnostic JSON-RPC 2.0 engine plus the adapters that host it:

1. Engine: validation, method resolution, parameter binding and dispatch of single and batch requests
2. Resolution: procedures are located through an injected resolver, so one engine serves any procedure set
3. Adapters:
   - Line: newline-framed JSON over TCP (asyncio)
   - ZeroMQ: REQ/REP sockets

All adapters report OpenTelemetry metrics and run each call inside a trace span.
"""

__version__ = "0.1.0"
