"""MCP Server entrypoint for the MariaDB gateway.

This module builds the connection manager and query pipeline from the
environment, creates the FastMCP server and registers all tools via the
central registry.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from common.config.env import get_env_int, get_env_str
from common.config.gateway_settings import GatewaySettings
from common.errors.exceptions import ConfigurationError
from dal.mariadb.connection_manager import ConnectionManager
from mcp_server.services.query_executor import QueryExecutor
from mcp_server.tools.registry import register_all

logger = logging.getLogger(__name__)

SERVER_NAME = "mariadb-gateway"


def configure_logging() -> None:
    """Send logs to stderr; stdout carries the stdio transport."""
    level_name = (get_env_str("LOG_LEVEL", "INFO") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def setup_telemetry() -> None:
    """Initialize OTEL SDK for the MCP server.

    Spans are exported over OTLP gRPC only when ``OTEL_EXPORTER_OTLP_ENDPOINT``
    is set; otherwise the provider records without exporting.
    """
    service_name = get_env_str("OTEL_SERVICE_NAME", SERVER_NAME)
    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    endpoint = get_env_str("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        logger.info("OTEL initialized without exporter (OTEL_EXPORTER_OTLP_ENDPOINT unset)")
        return

    try:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        logger.info(f"OTEL initialized for MCP Server: {service_name}")
    except Exception as exc:
        logger.exception("Failed to initialize MCP OTEL exporter; continuing degraded: %s", exc)


def create_server(
    settings: Optional[GatewaySettings] = None,
    manager: Optional[ConnectionManager] = None,
) -> FastMCP:
    """Build the FastMCP server with its connection manager and tools.

    Raises:
        ConfigurationError: if settings are not given and the environment is incomplete.
    """
    if manager is None:
        manager = ConnectionManager(settings or GatewaySettings.from_env())
    executor = QueryExecutor(manager)

    @asynccontextmanager
    async def lifespan(app):
        """Close the connection pool when the server shuts down.

        The pool itself is created lazily on the first query, inside the
        server's event loop.
        """
        logger.info("MCP server ready (pool size %d)", manager.settings.pool_size)
        try:
            yield
        finally:
            await manager.close()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
    register_all(mcp, executor)
    return mcp


def main() -> None:
    """Console entry point."""
    load_dotenv()
    configure_logging()
    setup_telemetry()

    try:
        mcp = create_server()
    except ConfigurationError as exc:
        logger.error("Refusing to start: %s", exc)
        sys.exit(2)

    # Respect transport and host/port from environment for containerized use
    transport = (get_env_str("MCP_TRANSPORT", "stdio") or "stdio").lower()
    host = get_env_str("MCP_HOST", "0.0.0.0")
    port = get_env_int("MCP_PORT", 8000)

    if transport in ("sse", "http", "streamable-http"):
        print(
            f"Starting MCP server in sse mode on {host}:{port}/messages",
            file=sys.stderr,
            flush=True,
        )
        mcp.run(transport="sse", host=host, port=port, path="/messages")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
