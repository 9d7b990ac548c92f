from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, Tuple

from workspace_manager.config import _env_str, _split_csv
from workspace_manager.core.models import PolicyRequirement

DEFAULT_POLICY_GROUP = "appstudio.redhat.com"
DEFAULT_POLICY_RESOURCES: Tuple[str, ...] = ("applications", "components")
DEFAULT_POLICY_VERBS: Tuple[str, ...] = ("create", "list", "watch", "delete")


def build_requirements(
    group: str, resources: Iterable[str], verbs: Iterable[str]
) -> Tuple[PolicyRequirement, ...]:
    """
    Cross product of verbs × resources within one group.

    Order is verbs-outer, resources-inner and is the order checks are issued in, which
    makes short-circuiting deterministic:
    (create, applications), (create, components), (list, applications), ...
    """
    resources = list(resources)
    return tuple(PolicyRequirement(group=group, resource=r, verb=v) for v in verbs for r in resources)


DEFAULT_WORKSPACE_POLICY: Tuple[PolicyRequirement, ...] = build_requirements(
    DEFAULT_POLICY_GROUP, DEFAULT_POLICY_RESOURCES, DEFAULT_POLICY_VERBS
)


@lru_cache(maxsize=1)
def load_workspace_policy() -> Tuple[PolicyRequirement, ...]:
    """
    Load the capability set a caller needs in a namespace to see it as a workspace.

    Recognized vars:
    - WM_POLICY_GROUP=appstudio.redhat.com
    - WM_POLICY_RESOURCES=applications,components
    - WM_POLICY_VERBS=create,list,watch,delete

    Unset/empty vars fall back to the defaults above.
    """
    group = _env_str("WM_POLICY_GROUP", DEFAULT_POLICY_GROUP)
    resources = _split_csv(os.getenv("WM_POLICY_RESOURCES", "")) or list(DEFAULT_POLICY_RESOURCES)
    verbs = _split_csv(os.getenv("WM_POLICY_VERBS", "")) or list(DEFAULT_POLICY_VERBS)
    return build_requirements(group, resources, verbs)
