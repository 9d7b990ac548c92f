"""
Pytest config.

Local imports like `import workspace_manager` rely on the repo root being on sys.path when
the package is not installed. We pin that here so tests always import the local tree.

Also provides an in-memory Kubernetes fake with the two behaviours the engine depends on:
NotFound on reads of absent objects and AlreadyExists on duplicate creates.
"""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from workspace_manager.core.models import CandidateNamespace  # noqa: E402
from workspace_manager.core.selectors import NamespaceSelector, TENANT_TYPE_LABEL, TENANT_TYPE_USER  # noqa: E402
from workspace_manager.errors import (  # noqa: E402
    DirectoryUnavailable,
    OracleUnavailable,
    RecordConflict,
    RecordNotFound,
    StoreUnavailable,
)

FULL_ACCESS_VERBS = ("create", "list", "watch", "delete")
FULL_ACCESS_RESOURCES = ("applications", "components")


class FakeK8s:
    """Implements the K8sProvider protocol against dicts."""

    def __init__(self) -> None:
        self.namespaces: Dict[str, CandidateNamespace] = {}
        self.role_bindings: Dict[Tuple[str, str], Dict[str, str]] = {}
        # (user, namespace, group, resource, verb)
        self.grants: Set[Tuple[str, str, str, str, str]] = set()
        self.access_checks: List[Tuple[str, str, str, str, str]] = []
        self.list_selectors: List[str] = []
        self.failing_checks: Set[Tuple[str, str, str]] = set()  # (namespace, resource, verb)
        self.fail_list = False
        self.fail_get = False
        self.fail_create_namespace = False
        self.fail_create_binding = False
        self.check_delay = 0.0  # seconds each access check blocks for
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    # --- setup helpers ---

    def add_tenant(self, name: str, *, tenant: bool = True) -> CandidateNamespace:
        labels = {"kubernetes.io/metadata.name": name}
        if tenant:
            labels[TENANT_TYPE_LABEL] = TENANT_TYPE_USER
        ns = CandidateNamespace(name=name, labels=labels)
        self.namespaces[name] = ns
        return ns

    def grant(
        self,
        user: str,
        namespace: str,
        *,
        verbs=FULL_ACCESS_VERBS,
        resources=FULL_ACCESS_RESOURCES,
        group: str = "appstudio.redhat.com",
    ) -> None:
        for verb in verbs:
            for resource in resources:
                self.grants.add((user, namespace, group, resource, verb))

    # --- K8sProvider ---

    def list_namespaces(self, selector: NamespaceSelector) -> List[CandidateNamespace]:
        self.list_selectors.append(selector.to_label_selector())
        if self.fail_list:
            raise DirectoryUnavailable("fake directory error")
        out = []
        for ns in self.namespaces.values():
            if ns.labels.get(TENANT_TYPE_LABEL) != TENANT_TYPE_USER:
                continue
            if selector.names and ns.name not in selector.names:
                continue
            out.append(ns)
        return out

    def check_access(self, *, user: str, namespace: str, group: str, resource: str, verb: str) -> bool:
        with self._lock:
            self.access_checks.append((user, namespace, group, resource, verb))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.check_delay:
                time.sleep(self.check_delay)
            if (namespace, resource, verb) in self.failing_checks:
                raise OracleUnavailable("fake access review error")
            return (user, namespace, group, resource, verb) in self.grants
        finally:
            with self._lock:
                self.in_flight -= 1

    def get_namespace(self, name: str) -> CandidateNamespace:
        if self.fail_get:
            raise StoreUnavailable("fake client error")
        try:
            return self.namespaces[name]
        except KeyError:
            raise RecordNotFound(f"Namespace {name} not found")

    def create_namespace(
        self,
        name: str,
        *,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None,
    ) -> None:
        if self.fail_create_namespace:
            raise StoreUnavailable("fake client error")
        with self._lock:
            if name in self.namespaces:
                raise RecordConflict(f"Namespace {name} already exists")
            self.namespaces[name] = CandidateNamespace(
                name=name, labels=dict(labels or {}), annotations=dict(annotations or {})
            )

    def create_role_binding(self, namespace: str, name: str, *, user: str, cluster_role: str) -> None:
        if self.fail_create_binding:
            raise StoreUnavailable("fake client error")
        with self._lock:
            if (namespace, name) in self.role_bindings:
                raise RecordConflict(f"RoleBinding {namespace}/{name} already exists")
            self.role_bindings[(namespace, name)] = {"user": user, "cluster_role": cluster_role}


@pytest.fixture
def fake_k8s() -> FakeK8s:
    return FakeK8s()


@pytest.fixture(autouse=True)
def _reset_cached_config() -> Iterator[None]:
    """Config loaders are lru_cached; tests that monkeypatch env need a clean slate."""
    from workspace_manager.authz.policy import load_workspace_policy
    from workspace_manager.config import load_service_config

    load_service_config.cache_clear()
    load_workspace_policy.cache_clear()
    yield
    load_service_config.cache_clear()
    load_workspace_policy.cache_clear()
