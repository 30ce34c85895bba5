"""
Configuration settings for Seam RPC servers and clients
"""
import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


class AdapterType:
    """Adapter type constants"""
    LINE = "line"
    ZEROMQ = "zeromq"


class SchedulerType:
    """Notification scheduler constants"""
    THREAD = "thread"
    INLINE = "inline"
    ASYNCIO = "asyncio"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TelemetryConfig:
    """Configuration for OpenTelemetry export"""
    enable_tracing: bool = False
    enable_metrics: bool = False
    service_name: str = "seam-rpc"
    otlp_endpoint: str = "localhost:4317"
    export_interval_ms: int = 5000

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        """Create config from environment variables"""
        return cls(
            enable_tracing=_env_bool("SEAM_RPC_TRACING", False),
            enable_metrics=_env_bool("SEAM_RPC_METRICS", False),
            service_name=os.getenv("SEAM_RPC_SERVICE_NAME", "seam-rpc"),
            otlp_endpoint=os.getenv("SEAM_RPC_OTLP_ENDPOINT", "localhost:4317"),
            export_interval_ms=int(os.getenv("SEAM_RPC_EXPORT_INTERVAL_MS", "5000")),
        )


@dataclass
class ServerConfig:
    """Main configuration for a Seam RPC server"""
    adapter: str = AdapterType.LINE
    host: str = "127.0.0.1"
    port: int = 9999
    bind_address: str = "tcp://*:5555"  # ZeroMQ only
    scheduler: str = SchedulerType.THREAD
    log_level: str = "INFO"
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    services: Optional[str] = None  # "module:function" registration hook

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create config from environment variables"""
        adapter = os.getenv("SEAM_RPC_ADAPTER", AdapterType.LINE).lower()
        if adapter not in (AdapterType.LINE, AdapterType.ZEROMQ):
            raise ValueError(f"Unsupported adapter: {adapter}")

        scheduler = os.getenv("SEAM_RPC_SCHEDULER", SchedulerType.THREAD).lower()
        if scheduler not in (SchedulerType.THREAD, SchedulerType.INLINE, SchedulerType.ASYNCIO):
            raise ValueError(f"Unsupported scheduler: {scheduler}")
        if scheduler == SchedulerType.ASYNCIO and adapter != AdapterType.LINE:
            raise ValueError("The asyncio scheduler requires the line adapter")

        return cls(
            adapter=adapter,
            host=os.getenv("SEAM_RPC_HOST", "127.0.0.1"),
            port=int(os.getenv("SEAM_RPC_PORT", "9999")),
            bind_address=os.getenv("SEAM_RPC_BIND_ADDRESS", "tcp://*:5555"),
            scheduler=scheduler,
            log_level=os.getenv("SEAM_RPC_LOG_LEVEL", "INFO").upper(),
            telemetry=TelemetryConfig.from_env(),
            services=os.getenv("SEAM_RPC_SERVICES"),
        )

    def adapter_config(self) -> Dict[str, Any]:
        """Keyword configuration passed to the adapter factory"""
        if self.adapter == AdapterType.ZEROMQ:
            return {"bind_address": self.bind_address}
        return {"host": self.host, "port": self.port}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "adapter": self.adapter,
            "host": self.host,
            "port": self.port,
            "bind_address": self.bind_address,
            "scheduler": self.scheduler,
            "log_level": self.log_level,
            "services": self.services,
            "enable_tracing": self.telemetry.enable_tracing,
            "enable_metrics": self.telemetry.enable_metrics,
            "service_name": self.telemetry.service_name,
        }
