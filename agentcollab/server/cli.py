"""
Command-line interface for the agentcollab server.
"""

import argparse
import sys

from .. import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentcollab-server",
        description="agentcollab server - multi-agent chat and workflow execution over HTTP",
    )

    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL for workflows and training data (default: in memory)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model id used by every agent instead of its persona default",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        help="Seconds allowed for each agent call in a chat request",
    )
    parser.add_argument(
        "--step-timeout",
        type=float,
        default=None,
        help="Seconds allowed for each workflow step",
    )
    parser.add_argument(
        "--isolate-failures",
        action="store_true",
        help="Keep successful workflow steps when a sibling step fails",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main():
    """Main entry point for the CLI."""
    args = build_parser().parse_args()

    from .app import AgentCollabServer

    print(f"""
agentcollab server v{__version__}
  Host:     {args.host}
  Port:     {args.port}
  Database: {args.database_url or "in memory"}

API Documentation: http://{args.host}:{args.port}/docs
Discovery:         http://{args.host}:{args.port}/.well-known/agentcollab.json

Press Ctrl+C to stop the server.
""")

    try:
        server = AgentCollabServer(
            host=args.host,
            port=args.port,
            database_url=args.database_url,
            model=args.model,
            request_timeout=args.request_timeout,
            step_timeout=args.step_timeout,
            isolate_failures=args.isolate_failures,
            debug=args.debug,
            log_level=args.log_level,
        )
        server.run()
    except KeyboardInterrupt:
        print("\nServer stopped.")
        sys.exit(0)


if __name__ == "__main__":
    main()
