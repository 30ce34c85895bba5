"""
Adapter Factory

Creates server and client adapters by transport name, so the transport can be
chosen from configuration.
"""

from typing import Dict, Any

from seam_rpc.adapters.adapter_interface import ClientAdapterInterface, ServerAdapterInterface
from seam_rpc.config import AdapterType

class AdapterFactory:
    """Adapter factory for creating communication adapter instances"""
    
    @staticmethod
    def create_client(adapter_type: str, config: Dict[str, Any] = None) -> ClientAdapterInterface:
        """Create client adapter
        
        Args:
            adapter_type: Adapter type, "line" or "zeromq"
            config: Adapter configuration parameters
            
        Returns:
            ClientAdapterInterface: Client adapter instance
            
        Raises:
            ValueError: Invalid adapter type
        """
        if config is None:
            config = {}
            
        if adapter_type.lower() == AdapterType.LINE:
            from seam_rpc.adapters.line.client import LineClient
            return LineClient(
                host=config.get("host", "127.0.0.1"),
                port=config.get("port", 9999),
                timeout_ms=config.get("timeout_ms", 5000)
            )
        elif adapter_type.lower() == AdapterType.ZEROMQ:
            from seam_rpc.adapters.zeromq.client import ZeroMQClient
            return ZeroMQClient(
                server_address=config.get("server_address", "tcp://localhost:5555"),
                timeout_ms=config.get("timeout_ms", 5000)
            )
        else:
            raise ValueError(f"Invalid adapter type: {adapter_type}")
    
    @staticmethod
    def create_server(adapter_type: str, engine, config: Dict[str, Any] = None) -> ServerAdapterInterface:
        """Create server adapter
        
        Args:
            adapter_type: Adapter type, "line" or "zeromq"
            engine: JsonRpcServer the adapter feeds requests to
            config: Adapter configuration parameters
            
        Returns:
            ServerAdapterInterface: Server adapter instance
            
        Raises:
            ValueError: Invalid adapter type
        """
        if config is None:
            config = {}
            
        if adapter_type.lower() == AdapterType.LINE:
            from seam_rpc.adapters.line.server import LineServer
            return LineServer(
                engine,
                host=config.get("host", "127.0.0.1"),
                port=config.get("port", 9999)
            )
        elif adapter_type.lower() == AdapterType.ZEROMQ:
            from seam_rpc.adapters.zeromq.server import ZeroMQServer
            return ZeroMQServer(
                engine,
                bind_address=config.get("bind_address", "tcp://*:5555")
            )
        else:
            raise ValueError(f"Invalid adapter type: {adapter_type}")
