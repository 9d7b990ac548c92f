"""Identity → tenant namespace name mapping."""

from __future__ import annotations

from typing import Optional

from workspace_manager.errors import IdentityRequired

# Kubernetes object names (DNS-1123 labels) are capped at 63 characters.
MAX_RESOURCE_NAME_LENGTH = 63
TENANT_SUFFIX = "-tenant"

_REPLACED_CHARS = ("@", "+", ".")


def normalize_identity(identity: str) -> str:
    """
    Map an email-like identity to its canonical tenant namespace name.

    `@`, `+` and `.` become `-`, the result is lowercased and suffixed with `-tenant`.
    Overlong names are trimmed from the prefix so the suffix always survives.

    Example:
        >>> normalize_identity("user.name+test@konflux.dev")
        'user-name-test-konflux-dev-tenant'
    """
    prefix = identity
    for ch in _REPLACED_CHARS:
        prefix = prefix.replace(ch, "-")
    prefix = prefix.lower()

    if len(prefix + TENANT_SUFFIX) > MAX_RESOURCE_NAME_LENGTH:
        prefix = prefix[: MAX_RESOURCE_NAME_LENGTH - len(TENANT_SUFFIX)]
    return prefix + TENANT_SUFFIX


def require_identity(identity: Optional[str]) -> str:
    """The caller identity is asserted upstream (X-Email); a missing one is a precondition failure."""
    if identity is None or not identity.strip():
        raise IdentityRequired("Caller identity is required")
    return identity
