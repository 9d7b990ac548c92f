"""
Label selectors for the tenant namespace directory.

Every selector carries the tenant-type term; there is no constructor that omits it, so
the directory can never be asked to enumerate non-tenant namespaces.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

TENANT_TYPE_LABEL = "konflux.ci/type"
TENANT_TYPE_USER = "user"
NAMESPACE_NAME_LABEL = "kubernetes.io/metadata.name"

# RFC 1123 label: what a namespace name (and so its metadata.name label value) can be.
_DNS1123_LABEL_RE = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")
_DNS1123_LABEL_MAX_LEN = 63


def is_namespace_name(value: str) -> bool:
    return len(value) <= _DNS1123_LABEL_MAX_LEN and bool(_DNS1123_LABEL_RE.fullmatch(value))


@dataclass(frozen=True)
class NamespaceSelector:
    # Empty tuple means "name label exists" (match every tenant namespace).
    names: Tuple[str, ...] = ()

    @classmethod
    def all_tenants(cls) -> "NamespaceSelector":
        return cls()

    @classmethod
    def named(cls, *names: str) -> "NamespaceSelector":
        """Raises ValueError for an empty list or any value that is not a valid namespace name."""
        if not names:
            raise ValueError("at least one namespace name is required")
        for name in names:
            if not is_namespace_name(name):
                raise ValueError(f"invalid namespace name: {name!r}")
        return cls(names=tuple(names))

    def to_label_selector(self) -> str:
        """Render in Kubernetes label-selector syntax (comma = AND)."""
        terms = [f"{TENANT_TYPE_LABEL} in ({TENANT_TYPE_USER})"]
        if self.names:
            terms.append(f"{NAMESPACE_NAME_LABEL} in ({','.join(sorted(set(self.names)))})")
        else:
            terms.append(NAMESPACE_NAME_LABEL)
        return ",".join(terms)

    def __str__(self) -> str:
        return self.to_label_selector()
