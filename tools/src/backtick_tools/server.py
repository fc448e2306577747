"""
MCP server assembly and command-line entry point.

Usage:
    backtick-mcp                 # stdio transport
    backtick-mcp --http --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from backtick_tools import __version__
from backtick_tools.config import load_server_config
from backtick_tools.credentials import CredentialStoreAdapter
from backtick_tools.errors import ConfigurationError
from backtick_tools.logging_config import setup_logging
from backtick_tools.registry import CapabilityRegistry
from backtick_tools.tools import build_registry

logger = logging.getLogger(__name__)

SERVER_NAME = "backtick-mcp-server"


async def create_server(
    registry: CapabilityRegistry | None = None,
    credentials: CredentialStoreAdapter | None = None,
) -> FastMCP:
    """Build the MCP server and bind every integration that can load."""
    credentials = credentials or CredentialStoreAdapter.default()
    registry = registry or build_registry(credentials)

    # Binding a tool, resource or prompt name twice fails the registering integration
    mcp = FastMCP(
        SERVER_NAME,
        instructions="Scheduling availability tools. List booking options first, then get slots.",
        on_duplicate_tools="error",
        on_duplicate_resources="error",
        on_duplicate_prompts="error",
    )

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "healthy",
                "service": SERVER_NAME,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    for name in credentials.missing():
        spec = credentials.spec(name)
        logger.info(f"Credential '{name}' not set ({spec.env_var}); see {spec.help_url}")

    await registry.register_all(mcp)
    registry.log_summary()
    return mcp


async def serve(http: bool = False, host: str = "127.0.0.1", port: int = 8080) -> None:
    registry = build_registry()
    mcp = await create_server(registry)
    try:
        if http:
            logger.info(f"Backtick MCP Server v{__version__} starting in HTTP mode on {host}:{port}")
            await mcp.run_async(transport="http", host=host, port=port)
        else:
            logger.info(f"Backtick MCP Server v{__version__} starting with STDIO transport")
            await mcp.run_async(transport="stdio")
    finally:
        await registry.cleanup()


def build_parser(default_port: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backtick-mcp",
        description="MCP server exposing scheduling availability tools",
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Serve over streamable HTTP instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind in HTTP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=default_port,
        help=f"Port to listen on in HTTP mode (default: {default_port}, or $PORT)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        config = load_server_config()
    except ConfigurationError as e:
        print(e.message, file=sys.stderr)
        return 1

    args = build_parser(config.port).parse_args(argv)
    setup_logging(config.log_level, config.environment)

    try:
        asyncio.run(serve(http=args.http, host=args.host, port=args.port))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
