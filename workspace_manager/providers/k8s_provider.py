"""Kubernetes API client: tenant namespace directory, access-review oracle, and namespace/RBAC writes."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from workspace_manager.core.models import CandidateNamespace
from workspace_manager.core.selectors import NamespaceSelector
from workspace_manager.errors import (
    DirectoryUnavailable,
    OracleUnavailable,
    RecordConflict,
    RecordNotFound,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

RBAC_API_GROUP = "rbac.authorization.k8s.io"

_core_v1_api = None
_rbac_v1_api = None
_authorization_v1_api = None
_config_loaded = False
_init_lock = threading.Lock()


@runtime_checkable
class K8sProvider(Protocol):
    def list_namespaces(self, selector: NamespaceSelector) -> List[CandidateNamespace]: ...

    def check_access(self, *, user: str, namespace: str, group: str, resource: str, verb: str) -> bool: ...

    def get_namespace(self, name: str) -> CandidateNamespace: ...

    def create_namespace(
        self,
        name: str,
        *,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None,
    ) -> None: ...

    def create_role_binding(self, namespace: str, name: str, *, user: str, cluster_role: str) -> None: ...


class DefaultK8sProvider:
    def list_namespaces(self, selector: NamespaceSelector) -> List[CandidateNamespace]:
        return list_namespaces(selector)

    def check_access(self, *, user: str, namespace: str, group: str, resource: str, verb: str) -> bool:
        return check_access(user=user, namespace=namespace, group=group, resource=resource, verb=verb)

    def get_namespace(self, name: str) -> CandidateNamespace:
        return get_namespace(name)

    def create_namespace(
        self,
        name: str,
        *,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None,
    ) -> None:
        create_namespace(name, labels=labels, annotations=annotations)

    def create_role_binding(self, namespace: str, name: str, *, user: str, cluster_role: str) -> None:
        create_role_binding(namespace, name, user=user, cluster_role=cluster_role)


def get_k8s_provider() -> K8sProvider:
    """Seam for swapping provider implementations (tests inject in-memory fakes)."""
    return DefaultK8sProvider()


def _load_config_locked() -> None:
    """Load in-cluster config, falling back to kubeconfig. Caller must hold `_init_lock`."""
    global _config_loaded
    if _config_loaded:
        return
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
    _config_loaded = True


def _get_core_v1():
    """
    Return a cached CoreV1Api client.

    Both config loading and the API client object are cached so every request does not
    pay for kubeconfig parsing and connection pool setup.
    """
    global _core_v1_api

    if _core_v1_api is not None:
        return _core_v1_api

    with _init_lock:
        if _core_v1_api is not None:
            return _core_v1_api
        from kubernetes import client

        _load_config_locked()
        _core_v1_api = client.CoreV1Api()
        return _core_v1_api


def _get_rbac_v1():
    """Return a cached RbacAuthorizationV1Api client (thread-safe lazy init)."""
    global _rbac_v1_api
    if _rbac_v1_api is not None:
        return _rbac_v1_api

    with _init_lock:
        if _rbac_v1_api is not None:
            return _rbac_v1_api
        from kubernetes import client

        _load_config_locked()
        _rbac_v1_api = client.RbacAuthorizationV1Api()
        return _rbac_v1_api


def _get_authorization_v1():
    """Return a cached AuthorizationV1Api client (thread-safe lazy init)."""
    global _authorization_v1_api
    if _authorization_v1_api is not None:
        return _authorization_v1_api

    with _init_lock:
        if _authorization_v1_api is not None:
            return _authorization_v1_api
        from kubernetes import client

        _load_config_locked()
        _authorization_v1_api = client.AuthorizationV1Api()
        return _authorization_v1_api


def _api_status(exc: BaseException) -> Optional[int]:
    """HTTP status of a kubernetes ApiException, or None for any other failure."""
    from kubernetes.client.rest import ApiException

    if isinstance(exc, ApiException):
        return exc.status
    return None


def _describe(exc: BaseException) -> str:
    from kubernetes.client.rest import ApiException

    if isinstance(exc, ApiException):
        return f"Kubernetes API error: {exc.status} {exc.reason}"
    return str(exc)


def _to_candidate(ns: Any) -> CandidateNamespace:
    metadata = getattr(ns, "metadata", None)
    labels = getattr(metadata, "labels", None)
    annotations = getattr(metadata, "annotations", None)
    return CandidateNamespace(
        name=metadata.name,
        labels=dict(labels) if isinstance(labels, dict) else {},
        annotations=dict(annotations) if isinstance(annotations, dict) else {},
    )


def list_namespaces(selector: NamespaceSelector) -> List[CandidateNamespace]:
    """List tenant namespaces matching `selector`, in API order."""
    label_selector = selector.to_label_selector()
    try:
        v1 = _get_core_v1()
        resp = v1.list_namespace(label_selector=label_selector)
    except Exception as e:
        raise DirectoryUnavailable(f"Failed to list namespaces ({label_selector}): {_describe(e)}") from e
    items = resp.items or []
    logger.debug("Listed %d namespace(s) for selector %s", len(items), label_selector)
    return [_to_candidate(ns) for ns in items]


def check_access(*, user: str, namespace: str, group: str, resource: str, verb: str) -> bool:
    """
    Ask the API server whether `user` may `verb` `group/resource` in `namespace`.

    Uses a LocalSubjectAccessReview, so the decision is the cluster's RBAC decision.
    """
    body = {
        "apiVersion": "authorization.k8s.io/v1",
        "kind": "LocalSubjectAccessReview",
        "metadata": {"namespace": namespace},
        "spec": {
            "user": user,
            "resourceAttributes": {
                "namespace": namespace,
                "verb": verb,
                "group": group,
                "resource": resource,
            },
        },
    }
    try:
        api = _get_authorization_v1()
        resp = api.create_namespaced_local_subject_access_review(namespace=namespace, body=body)
    except Exception as e:
        raise OracleUnavailable(
            f"Access review failed for {verb} {group}/{resource} in {namespace}: {_describe(e)}"
        ) from e
    status = getattr(resp, "status", None)
    return bool(getattr(status, "allowed", False))


def get_namespace(name: str) -> CandidateNamespace:
    try:
        v1 = _get_core_v1()
        ns = v1.read_namespace(name=name)
    except Exception as e:
        if _api_status(e) == 404:
            raise RecordNotFound(f"Namespace {name} not found") from e
        raise StoreUnavailable(f"Failed to read namespace {name}: {_describe(e)}") from e
    return _to_candidate(ns)


def create_namespace(
    name: str,
    *,
    labels: Optional[Dict[str, str]] = None,
    annotations: Optional[Dict[str, str]] = None,
) -> None:
    body = {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": name, "labels": dict(labels or {}), "annotations": dict(annotations or {})},
    }
    try:
        v1 = _get_core_v1()
        v1.create_namespace(body=body)
    except Exception as e:
        if _api_status(e) == 409:
            raise RecordConflict(f"Namespace {name} already exists") from e
        raise StoreUnavailable(f"Failed to create namespace {name}: {_describe(e)}") from e


def create_role_binding(namespace: str, name: str, *, user: str, cluster_role: str) -> None:
    """Bind `cluster_role` to `user` inside `namespace`."""
    body = {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "RoleBinding",
        "metadata": {"name": name, "namespace": namespace},
        "subjects": [{"kind": "User", "apiGroup": RBAC_API_GROUP, "name": user}],
        "roleRef": {"kind": "ClusterRole", "apiGroup": RBAC_API_GROUP, "name": cluster_role},
    }
    try:
        rbac = _get_rbac_v1()
        rbac.create_namespaced_role_binding(namespace=namespace, body=body)
    except Exception as e:
        if _api_status(e) == 409:
            raise RecordConflict(f"RoleBinding {namespace}/{name} already exists") from e
        raise StoreUnavailable(f"Failed to create role binding {namespace}/{name}: {_describe(e)}") from e
