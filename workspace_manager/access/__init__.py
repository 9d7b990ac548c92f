from workspace_manager.access.aggregator import (
    AccessResolution,
    evaluate_namespaces,
    resolve_accessible_namespaces,
)
from workspace_manager.access.workspaces import assemble_workspaces, find_workspace

__all__ = [
    "AccessResolution",
    "assemble_workspaces",
    "evaluate_namespaces",
    "find_workspace",
    "resolve_accessible_namespaces",
]
