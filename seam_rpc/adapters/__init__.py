"""
Communication Adapters Module

Adapter implementations hosting the JSON-RPC 2.0 engine on different transports:
- line: newline-framed JSON over TCP
- zeromq: ZeroMQ REQ/REP

Transport modules are imported lazily by the factory.
"""

from .adapter_factory import AdapterFactory
from .adapter_interface import ClientAdapterInterface, ServerAdapterInterface

__all__ = [
    "AdapterFactory",
    "ClientAdapterInterface",
    "ServerAdapterInterface"
]
