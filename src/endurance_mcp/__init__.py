"""
MCP Server for endurance workout export.

Turns coach-authored endurance prescriptions into device workouts:
normalize, validate, convert per provider, and deliver to Garmin or
Wahoo through their OAuth-protected APIs.

Supports two transport modes:
- stdio: For single-user local usage (default)
- http: For multi-user HTTP server deployment
"""

import os

from fastmcp import FastMCP

from endurance_mcp import devices
from endurance_mcp import exports


def create_app() -> FastMCP:
    """Create and configure the MCP app with all tools registered."""
    app = FastMCP("Endurance Export v1.0")

    # Register device connection tools (OAuth, primary provider)
    app = devices.register_tools(app)

    # Register export tools (preview, export, auto-push, status)
    app = exports.register_tools(app)

    return app


def main():
    """Initialize the MCP server and run with configured transport.

    Environment variables:
    - MCP_TRANSPORT: 'stdio' (default) or 'http'
    - MCP_HOST: Host to bind to (default: '0.0.0.0')
    - MCP_PORT: Port for HTTP transport (default: 8082)
    """
    app = create_app()

    transport = os.environ.get("MCP_TRANSPORT", "stdio")

    if transport == "http":
        host = os.environ.get("MCP_HOST", "0.0.0.0")
        port = int(os.environ.get("MCP_PORT", "8082"))
        app.run(transport="http", host=host, port=port)
    else:
        app.run()


if __name__ == "__main__":
    main()
