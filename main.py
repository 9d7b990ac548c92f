#!/usr/bin/env python3
"""
Workspace Manager - tenant workspace listing and namespace signup for Kubernetes.
"""

import argparse
import asyncio
import json
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep package imports lazy (inside functions) so `--normalize` works without the
# kubernetes client or web stack being importable.
#


def print_normalized(identity: str) -> None:
    from workspace_manager.core.naming import normalize_identity

    print(normalize_identity(identity))


def print_workspaces(identity: str) -> None:
    """Resolve the caller's workspaces against the current kubeconfig context and print them as JSON."""
    from workspace_manager.access.aggregator import resolve_accessible_namespaces
    from workspace_manager.access.workspaces import assemble_workspaces
    from workspace_manager.config import load_service_config
    from workspace_manager.core.selectors import NamespaceSelector
    from workspace_manager.providers.k8s_provider import get_k8s_provider

    k8s = get_k8s_provider()
    candidates = k8s.list_namespaces(NamespaceSelector.all_tenants())
    namespaces = asyncio.run(
        resolve_accessible_namespaces(
            identity, candidates, oracle=k8s, concurrency=load_service_config().access_check_concurrency
        )
    )
    workspaces = assemble_workspaces(namespaces)
    print(json.dumps(workspaces.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tenant workspace manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the HTTP API (port from WM_HTTP_PORT, default 5000)
  python main.py --serve

  # Show the tenant namespace name an identity maps to
  python main.py --normalize user.name+test@konflux.dev

  # List the workspaces an identity can access (uses your kubeconfig)
  python main.py --list-workspaces --email user1@konflux.dev
        """,
    )

    parser.add_argument("--serve", action="store_true", help="Run the workspace manager HTTP API")
    parser.add_argument("--host", default=None, help="Server bind host (default: WM_HTTP_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Server listen port (default: WM_HTTP_PORT or 5000)")
    parser.add_argument("--normalize", metavar="EMAIL", help="Print the tenant namespace name for EMAIL")
    parser.add_argument(
        "--list-workspaces", action="store_true", help="Print the workspaces accessible to --email as JSON"
    )
    parser.add_argument("--email", help="Caller identity (for --list-workspaces)")

    args = parser.parse_args()

    try:
        if args.serve:
            from workspace_manager.api.server import run as run_server

            run_server(host=args.host, port=args.port)
            return

        if args.normalize:
            print_normalized(args.normalize)
            return

        if args.list_workspaces:
            if not args.email:
                parser.error("--list-workspaces requires --email")
            print_workspaces(args.email)
            return

        parser.print_help()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
