"""Error taxonomy shared by the access-resolution and provisioning paths."""

from __future__ import annotations


class WorkspaceManagerError(Exception):
    """Base class; `status_code` is what the HTTP layer responds with."""

    status_code = 500


class IdentityRequired(WorkspaceManagerError):
    """The caller identity (X-Email) was missing or blank."""


class OracleUnavailable(WorkspaceManagerError):
    """An authorization check could not be completed."""


class DirectoryUnavailable(WorkspaceManagerError):
    """Listing candidate tenant namespaces failed."""


class StoreUnavailable(WorkspaceManagerError):
    """A read or write against the object store failed for a reason other than NotFound/AlreadyExists."""


class RecordNotFound(WorkspaceManagerError):
    status_code = 404


class RecordConflict(WorkspaceManagerError):
    status_code = 409


class WorkspaceNotFound(WorkspaceManagerError):
    status_code = 404
