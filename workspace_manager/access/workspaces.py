"""Project accessible namespaces into Workspace views (one workspace per namespace)."""

from __future__ import annotations

from typing import Sequence

from workspace_manager.core.models import (
    DEFAULT_NAMESPACE_TYPE,
    CandidateNamespace,
    ObjectMeta,
    SpaceNamespace,
    Workspace,
    WorkspaceList,
    WorkspaceStatus,
)
from workspace_manager.errors import WorkspaceNotFound


def workspace_for_namespace(namespace: CandidateNamespace) -> Workspace:
    return Workspace(
        metadata=ObjectMeta(name=namespace.name),
        status=WorkspaceStatus(namespaces=[SpaceNamespace(name=namespace.name, type=DEFAULT_NAMESPACE_TYPE)]),
    )


def assemble_workspaces(namespaces: Sequence[CandidateNamespace]) -> WorkspaceList:
    """Callers must only pass namespaces that already passed the access policy."""
    return WorkspaceList(items=[workspace_for_namespace(ns) for ns in namespaces])


def find_workspace(workspaces: WorkspaceList, name: str) -> Workspace:
    for ws in workspaces.items:
        if ws.name == name:
            return ws
    raise WorkspaceNotFound(f"Workspace {name} not found")
