"""
Workspace manager for a multi-tenant Kubernetes platform.

- Resolves which tenant namespaces (workspaces) a caller may access.
- Provisions a tenant namespace plus its initial admin binding on signup.
"""
