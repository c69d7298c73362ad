"""Unified entry point for pmvault.

Starts one of the interfaces over the same vault:
- REST API server (default)
- CLI
"""

import argparse


def main(argv: list[str] | None = None):
    """Main entry point with interface selection."""
    parser = argparse.ArgumentParser(
        prog="pmvault",
        description="pmvault - boards and stories in a folder of Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Interfaces:
  api         Start the REST API server (default)
  cli         Run a CLI command against the vault

Examples:
  python -m pmvault                          # Start API server
  python -m pmvault api --port 8080          # Start API on custom port
  python -m pmvault cli board default        # Show the default board
  python -m pmvault cli move welcome Done    # Move a task
""",
    )

    parser.add_argument(
        "interface",
        nargs="?",
        default="api",
        choices=["api", "cli"],
        help="Which interface to start (default: api)",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind API server to (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for API server (default: 8430)",
    )

    args, rest = parser.parse_known_args(argv)

    if args.interface == "api":
        if rest:
            parser.error(f"unrecognized arguments: {' '.join(rest)}")

        from pmvault.api.app import run_server
        from pmvault.core.config import PMVAULT_HOST, PMVAULT_PORT, setup_logging

        setup_logging()
        host = args.host or PMVAULT_HOST
        port = args.port or PMVAULT_PORT

        print(f"Starting pmvault API server on {host}:{port}")
        run_server(host=host, port=port)

    elif args.interface == "cli":
        from pmvault.interfaces.cli.app import run_cli

        run_cli(rest)


if __name__ == "__main__":
    main()
