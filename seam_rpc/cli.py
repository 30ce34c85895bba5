"""
Command line entry point

    seam-rpc serve [--adapter line|zeromq] [--port 9999] [--services pkg.module:register]
    seam-rpc call METHOD [PARAMS_JSON] [--notify]

Defaults come from SEAM_RPC_* environment variables (see seam_rpc.config).
"""

import argparse
import importlib
import json
import logging
import signal
import sys
from typing import List, Optional

from seam_rpc.adapters.adapter_factory import AdapterFactory
from seam_rpc.config import AdapterType, SchedulerType, ServerConfig
from seam_rpc.rpc import (
    AsyncioScheduler,
    InlineScheduler,
    JsonRpcServer,
    ServiceRegistry,
    ThreadedScheduler
)
from seam_rpc.telemetry import setup_metrics, setup_tracer

logger = logging.getLogger(__name__)


def echo(*args):
    """Return the positional arguments it was called with"""
    # The trailing argument is the error value
    return list(args[:-1])


def load_services(registry: ServiceRegistry, spec: str) -> None:
    """Call a ``module:function`` hook with the registry so it can register procedures

    Raises:
        ValueError: Malformed hook specification
        ImportError: Module cannot be imported
        AttributeError: Function not found in module
    """
    module_name, sep, func_name = spec.partition(":")
    if not sep or not module_name or not func_name:
        raise ValueError(f"Expected 'module:function', got {spec!r}")

    module = importlib.import_module(module_name)
    getattr(module, func_name)(registry)
    logger.info(f"Loaded services from {spec}: {registry.list_methods()}")


def create_scheduler(kind: str):
    if kind == SchedulerType.INLINE:
        return InlineScheduler()
    if kind == SchedulerType.ASYNCIO:
        return AsyncioScheduler()
    return ThreadedScheduler()


def build_engine(config: ServerConfig) -> JsonRpcServer:
    """Create the engine with the demo ``echo`` service plus any configured hook"""
    registry = ServiceRegistry()
    registry.register("echo", echo)
    if config.services:
        load_services(registry, config.services)
    return JsonRpcServer(registry, scheduler=create_scheduler(config.scheduler))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        raise SystemExit(f"Invalid environment configuration: {e}")

    parser = argparse.ArgumentParser(prog="seam-rpc", description="JSON-RPC 2.0 server and client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run a JSON-RPC server")
    serve.add_argument("--adapter", choices=[AdapterType.LINE, AdapterType.ZEROMQ], default=defaults.adapter,
                       help=f"Transport adapter (default: {defaults.adapter})")
    serve.add_argument("--host", default=defaults.host,
                       help=f"Line adapter listen host (default: {defaults.host})")
    serve.add_argument("--port", type=int, default=defaults.port,
                       help=f"Line adapter listen port (default: {defaults.port})")
    serve.add_argument("--bind", dest="bind_address", default=defaults.bind_address,
                       help=f"ZeroMQ bind address (default: {defaults.bind_address})")
    serve.add_argument("--scheduler", choices=[SchedulerType.THREAD, SchedulerType.INLINE, SchedulerType.ASYNCIO],
                       default=defaults.scheduler,
                       help=f"Where notifications run (default: {defaults.scheduler})")
    serve.add_argument("--services", default=defaults.services,
                       help="module:function called with the service registry")
    serve.add_argument("--tracing", action="store_true", default=defaults.telemetry.enable_tracing,
                       help="Export traces over OTLP")
    serve.add_argument("--metrics", action="store_true", default=defaults.telemetry.enable_metrics,
                       help="Export metrics over OTLP")
    serve.add_argument("--log-level", default=defaults.log_level,
                       help=f"Logging level (default: {defaults.log_level})")

    call = subparsers.add_parser("call", help="Call a method on a line server")
    call.add_argument("method", help="Method name")
    call.add_argument("params", nargs="?", default=None,
                      help="Parameters as a JSON array or object")
    call.add_argument("--host", default=defaults.host,
                      help=f"Server host (default: {defaults.host})")
    call.add_argument("--port", type=int, default=defaults.port,
                      help=f"Server port (default: {defaults.port})")
    call.add_argument("--notify", action="store_true",
                      help="Send as a notification and do not wait for a response")
    call.add_argument("--timeout-ms", type=int, default=5000,
                      help="Response timeout in milliseconds (default: 5000)")
    call.add_argument("--log-level", default="WARNING",
                      help="Logging level (default: WARNING)")

    args = parser.parse_args(argv)
    args.defaults = defaults
    return args


def serve(args: argparse.Namespace) -> int:
    config = args.defaults
    config.adapter = args.adapter
    config.host = args.host
    config.port = args.port
    config.bind_address = args.bind_address
    config.scheduler = args.scheduler
    config.services = args.services
    config.telemetry.enable_tracing = args.tracing
    config.telemetry.enable_metrics = args.metrics

    if config.scheduler == SchedulerType.ASYNCIO and config.adapter != AdapterType.LINE:
        logger.error("The asyncio scheduler requires the line adapter")
        return 2

    if config.telemetry.enable_tracing:
        setup_tracer(config.telemetry.service_name, config.telemetry.otlp_endpoint)
    if config.telemetry.enable_metrics:
        setup_metrics(config.telemetry.service_name, config.telemetry.otlp_endpoint,
                      config.telemetry.export_interval_ms)

    engine = build_engine(config)
    server = AdapterFactory.create_server(config.adapter, engine, config.adapter_config())
    logger.info(f"Starting server: {config.to_dict()}")

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        server.stop()

    signal.signal(signal.SIGTERM, handle_signal)

    try:
        server.start(threaded=False)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        server.stop()
        engine.close()
    return 0


def call(args: argparse.Namespace) -> int:
    params = None
    if args.params is not None:
        try:
            params = json.loads(args.params)
        except ValueError as e:
            logger.error(f"PARAMS_JSON is not valid JSON: {e}")
            return 2
        if not isinstance(params, (list, dict)):
            logger.error("PARAMS_JSON must be an array or an object")
            return 2

    client = AdapterFactory.create_client(AdapterType.LINE, {
        "host": args.host,
        "port": args.port,
        "timeout_ms": args.timeout_ms
    })
    try:
        if args.notify:
            client.notify(args.method, params)
            return 0
        response = client.call(args.method, params)
    finally:
        client.close()

    print(json.dumps(response, indent=2))
    return 1 if "error" in response else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "serve":
        return serve(args)
    try:
        return call(args)
    except (ConnectionError, TimeoutError, ValueError) as e:
        logger.error(f"Call failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
