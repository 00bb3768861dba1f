"""
agentcollab CLI - Chat with agents and run multi-agent workflows.

Commands:
    agentcollab route "text"             Show which agent would answer
    agentcollab chat "text"              Ask the agent team a question
    agentcollab validate workflow.yaml   Validate a workflow file
    agentcollab run workflow.yaml        Run a workflow locally
    agentcollab serve                    Start the HTTP server
"""

import argparse
import asyncio
import json
import logging
import sys

from . import __version__


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_system(args: argparse.Namespace):
    from .llm import ProviderGenerator
    from .system import CollaborationSystem

    return CollaborationSystem(
        args.user,
        ProviderGenerator(),
        model=args.model,
        request_timeout=getattr(args, "request_timeout", None),
        step_timeout=getattr(args, "step_timeout", None),
        isolate_failures=getattr(args, "isolate_failures", False),
    )


def cmd_route(args: argparse.Namespace) -> None:
    """Print the agent id a message routes to."""
    from .routing import route_request

    print(route_request(args.message))


def cmd_chat(args: argparse.Namespace) -> None:
    """Send one chat message and print the answers."""
    from .exceptions import AgentCollabError

    system = _build_system(args)

    try:
        result = asyncio.run(
            system.handle_chat_request(args.message, agent_id=args.agent)
        )
    except AgentCollabError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return

    primary = result.primary_response
    print(f"[{result.primary_agent_id}] (confidence {primary.confidence:.2f})")
    print(primary.content)
    for action in primary.suggested_actions:
        print(f"  - {action}")

    for response in result.collaboration_responses:
        print(f"\n[{response.agent_id}] (collaboration)")
        print(response.content)

    if result.workflow:
        workflow = result.workflow
        print(f"\nWorkflow created: {workflow.id} ({len(workflow.steps)} steps)")
        for step in workflow.steps:
            deps = f" after {', '.join(step.dependencies)}" if step.dependencies else ""
            print(f"  - {step.agent_id}: {step.task}{deps}")


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a workflow YAML file."""
    from .exceptions import WorkflowError, WorkflowValidationError
    from .personas import DEFAULT_PERSONAS
    from .workflow import WorkflowSpec, validate_workflow

    known_agents = [persona.agent_id for persona in DEFAULT_PERSONAS]
    try:
        warnings = validate_workflow(args.workflow, known_agents=known_agents)
        spec = WorkflowSpec.from_yaml(args.workflow)
    except WorkflowValidationError as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        sys.exit(1)
    except WorkflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Workflow '{spec.name}' is valid!")
    print(f"  Steps:  {len(spec.steps)}")
    print(f"  Agents: {len({s.assign for s in spec.steps})}")

    if warnings:
        print(f"\nWarnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")


def cmd_run(args: argparse.Namespace) -> None:
    """Run a workflow from a YAML file against the built-in agents."""
    from .exceptions import WorkflowError, WorkflowNotFoundError, WorkflowValidationError
    from .models import WorkflowStatus
    from .workflow import WorkflowSpec

    try:
        spec = WorkflowSpec.from_yaml(args.workflow)
    except WorkflowNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except WorkflowValidationError as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Workflow: {spec.name}")
    for step in spec.to_steps():
        deps = f" (after {', '.join(step.dependencies)})" if step.dependencies else ""
        print(f"  - {step.agent_id}: {step.task}{deps}")

    if args.dry_run:
        return

    system = _build_system(args)
    print("\nStarting workflow execution...\n")

    try:
        workflow = asyncio.run(spec.run(system, timeout=args.timeout))
    except WorkflowError as e:
        print(f"\nWorkflow failed: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nWorkflow cancelled")
        sys.exit(0)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(workflow.to_dict(), f, indent=2, default=str)
        print(f"Result saved to: {args.output}")
    else:
        print(json.dumps(workflow.to_dict(), indent=2, default=str))

    if workflow.status != WorkflowStatus.COMPLETED:
        print(f"\nWorkflow failed: {workflow.error}", file=sys.stderr)
        sys.exit(1)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the HTTP server."""
    from .server.app import AgentCollabServer

    server = AgentCollabServer(
        host=args.host,
        port=args.port,
        database_url=args.database_url,
        model=args.model,
        isolate_failures=args.isolate_failures,
        log_level=args.log_level,
    )
    try:
        server.run()
    except KeyboardInterrupt:
        print("\nServer stopped.")


def _add_agent_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--user",
        "-u",
        default="cli",
        help="User id that owns the agent session (default: cli)",
    )
    parser.add_argument(
        "--model",
        "-m",
        default=None,
        help="Model id used by every agent instead of its persona default",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentcollab",
        description="agentcollab CLI - Chat with agents and run multi-agent workflows",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Route command
    route_parser = subparsers.add_parser("route", help="Show which agent a message routes to")
    route_parser.add_argument("message", help="Message text")
    route_parser.set_defaults(func=cmd_route)

    # Chat command
    chat_parser = subparsers.add_parser("chat", help="Send a chat message to the agents")
    chat_parser.add_argument("message", help="Message text")
    chat_parser.add_argument(
        "--agent",
        "-a",
        default=None,
        help="Agent id to answer instead of keyword routing",
    )
    chat_parser.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        help="Seconds allowed for each agent call",
    )
    chat_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON",
    )
    _add_agent_options(chat_parser)
    chat_parser.set_defaults(func=cmd_chat)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a workflow YAML")
    validate_parser.add_argument("workflow", help="Path to workflow YAML file")
    validate_parser.set_defaults(func=cmd_validate)

    # Run command
    run_parser = subparsers.add_parser("run", help="Run a workflow from YAML")
    run_parser.add_argument("workflow", help="Path to workflow YAML file")
    run_parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        help="Overall execution timeout in seconds",
    )
    run_parser.add_argument(
        "--step-timeout",
        type=float,
        default=None,
        help="Seconds allowed for each workflow step",
    )
    run_parser.add_argument(
        "--isolate-failures",
        action="store_true",
        help="Keep successful steps when a sibling step fails",
    )
    run_parser.add_argument(
        "--output",
        "-o",
        help="Save result to JSON file",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and show workflow without executing",
    )
    _add_agent_options(run_parser)
    run_parser.set_defaults(func=cmd_run)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL for workflows and training data (default: in memory)",
    )
    serve_parser.add_argument("--model", default=None, help="Model id for every agent")
    serve_parser.add_argument(
        "--isolate-failures",
        action="store_true",
        help="Keep successful workflow steps when a sibling step fails",
    )
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
