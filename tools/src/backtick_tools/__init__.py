"""
Backtick MCP tools: scheduling availability for LLM agents.

Integrations (currently Cal.com and a demo set) are collected in a
CapabilityRegistry and bound on a FastMCP server at startup; an integration
whose credentials are missing is skipped instead of failing the server.

Usage:
    from backtick_tools.server import create_server

    mcp = await create_server()
"""

__version__ = "1.0.0"
