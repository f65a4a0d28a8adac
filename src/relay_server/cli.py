"""
Command-line interface for the chat relay.

Provides CLI commands for server management:
- run: Start the relay (HTTP + WebSocket)
- config: Print the resolved configuration

Usage:
    relay-server run [--host HOST] [--port PORT]
    relay-server config

Environment Variables:
    CHAT_HOST: Host to bind the server (default: 0.0.0.0)
    PORT / CHAT_PORT: Port for the server (default: 3000)
    REDIS_URL: Redis connection URL
    CHAT_STORAGE_BACKEND: ``redis`` or ``memory``
    See config/server.example.ini for the full list of settings.
"""

import argparse
import sys


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the relay server in the foreground.

    Configuration Priority:
        1. CLI arguments (--host, --port)
        2. Environment variables (CHAT_HOST, PORT / CHAT_PORT)
        3. config/server.ini, then built-in defaults

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on error during startup.
    """
    from relay_server.api.server import start_server

    try:
        start_server(host=args.host, port=args.port)
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Print the resolved configuration (secrets omitted)."""
    from relay_server.config import print_config_summary

    print_config_summary()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="relay-server",
        description="Chat Relay - room-scoped real-time chat with automatic translation",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the relay server",
        description="Start the HTTP and WebSocket server.",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="Server port (default: 3000, or PORT / CHAT_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 0.0.0.0, or CHAT_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show the resolved configuration",
        description="Print configuration after INI files and environment overrides.",
    )
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
