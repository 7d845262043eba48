"""Command-line interface for the Bakery MCP Server."""

import argparse
import asyncio
import logging
import sys

from . import __version__

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bakery-mcp-server",
        description="Serve the bakery storefront (menu, cart and pickup orders) to MCP clients or over HTTP.",
        epilog="SUPABASE_URL and SUPABASE_KEY must be set in the environment.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="transport to serve on (default: %(default)s)",
    )
    http_group = parser.add_argument_group("http mode")
    http_group.add_argument("--host", default="0.0.0.0", help="interface to bind (default: %(default)s)")
    http_group.add_argument("--port", type=int, default=8000, help="port to listen on (default: %(default)s)")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        type=str.upper,
        help="logging verbosity (default: %(default)s)",
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Configured before the server modules are imported, so this level wins
    logging.basicConfig(level=args.log_level)

    try:
        if args.mode == "stdio":
            from .server import main as server_main

            asyncio.run(server_main())
        else:
            from .config import BackendSettings
            from .http_server import run_http_server

            # Fail before uvicorn starts if the backend is not configured
            BackendSettings.from_env()
            print(f"Bakery storefront listening on http://{args.host}:{args.port} (docs at /docs)", file=sys.stderr)
            run_http_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
