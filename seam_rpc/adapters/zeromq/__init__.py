"""
ZeroMQ Adapter Package

Implements ZeroMQ REQ/REP server and client adapters carrying JSON-RPC 2.0 messages.
"""

from seam_rpc.adapters.zeromq.client import ZeroMQClient
from seam_rpc.adapters.zeromq.server import ZeroMQServer

__all__ = ["ZeroMQClient", "ZeroMQServer"]
