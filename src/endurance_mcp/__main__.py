"""
Command line launcher for the endurance export server.

Flags are translated into the environment variables AppConfig and
endurance_mcp.main() read, so a flag and its variable are interchangeable.

Usage:
    python -m endurance_mcp                               # stdio, one coach client
    python -m endurance_mcp --http --port 9000            # shared HTTP endpoint
    python -m endurance_mcp --data-dir ./data --dev-oauth # local run, mock OAuth
"""

import argparse
import os
from typing import List, MutableMapping, Optional

from endurance_mcp import main as run_server

DEFAULT_PORT = 8082


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="endurance-mcp",
        description=(
            "Serve MCP tools that connect athletes' Garmin and Wahoo accounts "
            "and deliver their endurance sessions as device workouts."
        ),
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Serve over streamable HTTP for several coach clients (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface the HTTP endpoint listens on (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port of the HTTP endpoint (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--data-dir",
        help="Directory holding sessions, device connections and OAuth states "
             "(overrides ENDURANCE_DATA_DIR)",
    )
    parser.add_argument(
        "--dev-oauth",
        action="store_true",
        help="Accept any OAuth code and issue mock tokens when provider "
             "credentials are missing (sets DEV_MODE_OAUTH=true)",
    )
    return parser


def apply_args(args: argparse.Namespace, environ: MutableMapping[str, str]) -> None:
    """Write parsed flags into the environment the server is configured from."""
    if args.http:
        environ["MCP_TRANSPORT"] = "http"
        environ["MCP_HOST"] = args.host
        environ["MCP_PORT"] = str(args.port)
    else:
        environ["MCP_TRANSPORT"] = "stdio"

    if args.data_dir:
        environ["ENDURANCE_DATA_DIR"] = args.data_dir
    if args.dev_oauth:
        environ["DEV_MODE_OAUTH"] = "true"


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    apply_args(args, os.environ)

    if args.http:
        print(f"Endurance export endpoint: http://{args.host}:{args.port}/mcp")
    run_server()


if __name__ == "__main__":
    main()
