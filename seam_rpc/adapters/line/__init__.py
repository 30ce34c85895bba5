"""
Line Adapter Package

Newline-framed JSON-RPC 2.0 over TCP: one JSON text per line in each direction.
"""

from seam_rpc.adapters.line.client import LineClient
from seam_rpc.adapters.line.server import LineServer

__all__ = ["LineClient", "LineServer"]
