"""
Tenant namespace provisioning.

States: lookup resolves UNKNOWN -> {EXISTS, ABSENT}. signup passes through CREATING and ends in
CREATED when it wrote anything, EXISTS when both records were already there, or FAILED on a
store error.

Creation is two independent writes (namespace, then admin role binding) with no
transaction around them. Each write treats "already exists" as success, so a retry after a
partial failure (namespace created, binding not) finishes the job, and concurrent signups
for the same identity all succeed against a single namespace/binding pair.
"""

from __future__ import annotations

import logging
from typing import Optional

from workspace_manager.core.models import Signup
from workspace_manager.core.naming import normalize_identity, require_identity
from workspace_manager.core.selectors import TENANT_TYPE_LABEL, TENANT_TYPE_USER
from workspace_manager.errors import RecordConflict, RecordNotFound, StoreUnavailable
from workspace_manager.providers.k8s_provider import K8sProvider
from workspace_manager.signup.base import ProvisioningState, ProvisionResult

logger = logging.getLogger(__name__)

USER_EMAIL_ANNOTATION = "konflux-ci.dev/requester-email"
USER_ID_ANNOTATION = "konflux-ci.dev/requester-user-id"
INITIAL_ADMIN_BINDING = "konflux-init-admin"
DEFAULT_ADMIN_CLUSTER_ROLE = "konflux-admin-user-actions"


class NamespaceProvisioner:
    def __init__(self, k8s: K8sProvider, *, admin_cluster_role: str = DEFAULT_ADMIN_CLUSTER_ROLE) -> None:
        self._k8s = k8s
        self._admin_cluster_role = admin_cluster_role

    def lookup(self, identity: str) -> ProvisioningState:
        """Resolve UNKNOWN into EXISTS or ABSENT. Other read failures propagate as StoreUnavailable."""
        ns_name = normalize_identity(require_identity(identity))
        try:
            self._k8s.get_namespace(ns_name)
        except RecordNotFound:
            return ProvisioningState.ABSENT
        return ProvisioningState.EXISTS

    def check_signup(self, identity: str) -> Signup:
        logger.info("Checking if namespace exists for user %s", identity)
        state = self.lookup(identity)
        if state == ProvisioningState.EXISTS:
            return Signup.signed_up()
        return Signup.not_signed_up()

    def signup(self, identity: str, user_id: Optional[str] = None) -> ProvisionResult:
        identity = require_identity(identity)
        ns_name = normalize_identity(identity)
        logger.info("Creating namespace %s for user %s (state=%s)", ns_name, identity, ProvisioningState.CREATING.value)

        namespace_created = self._create_namespace(ns_name, identity, user_id)
        binding_created = self._create_admin_binding(ns_name, identity)
        state = ProvisioningState.CREATED if namespace_created or binding_created else ProvisioningState.EXISTS

        logger.info(
            "Provisioned %s (state=%s, namespace_created=%s, binding_created=%s)",
            ns_name,
            state.value,
            namespace_created,
            binding_created,
        )
        return ProvisionResult(
            namespace=ns_name,
            state=state,
            namespace_created=namespace_created,
            binding_created=binding_created,
        )

    def _create_namespace(self, ns_name: str, identity: str, user_id: Optional[str]) -> bool:
        try:
            self._k8s.create_namespace(
                ns_name,
                labels={TENANT_TYPE_LABEL: TENANT_TYPE_USER},
                annotations={USER_EMAIL_ANNOTATION: identity, USER_ID_ANNOTATION: user_id or ""},
            )
        except RecordConflict:
            logger.info("Namespace %s already exists", ns_name)
            return False
        except StoreUnavailable as e:
            logger.error("Failed to create namespace %s (state=%s): %s", ns_name, ProvisioningState.FAILED.value, e)
            raise
        return True

    def _create_admin_binding(self, ns_name: str, identity: str) -> bool:
        try:
            self._k8s.create_role_binding(
                ns_name, INITIAL_ADMIN_BINDING, user=identity, cluster_role=self._admin_cluster_role
            )
        except RecordConflict:
            logger.warning("Role binding for the initial admin already exists in %s", ns_name)
            return False
        except StoreUnavailable as e:
            logger.error("Failed to create admin role binding for user %s: %s", identity, e)
            raise
        return True

