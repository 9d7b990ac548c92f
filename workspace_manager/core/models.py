"""Domain models for access resolution, workspaces and signup.

Workspace/WorkspaceList serialize in the toolchain API shape
(`toolchain.dev.openshift.com/v1alpha1`) that UI clients already consume.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

WORKSPACE_API_VERSION = "toolchain.dev.openshift.com/v1alpha1"
DEFAULT_NAMESPACE_TYPE = "default"


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BaseModelFrozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CandidateNamespace(BaseModelFrozen):
    """Snapshot of one tenant namespace as returned by the directory."""

    name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)


class PolicyRequirement(BaseModelFrozen):
    group: str
    resource: str
    verb: str

    def __str__(self) -> str:
        return f"{self.verb} {self.group}/{self.resource}"


class AccessDecision(BaseModelStrict):
    namespace: str
    allowed: bool
    # First requirement that was denied (or whose check failed); None when allowed.
    denied_by: Optional[PolicyRequirement] = None
    error: Optional[str] = None


class ObjectMeta(BaseModelStrict):
    name: str


class SpaceNamespace(BaseModelStrict):
    name: str
    type: str = DEFAULT_NAMESPACE_TYPE


class WorkspaceStatus(BaseModelStrict):
    namespaces: List[SpaceNamespace] = Field(default_factory=list)
    owner: Optional[str] = None
    role: Optional[str] = None


class Workspace(BaseModelStrict):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: Literal["Workspace"] = "Workspace"
    api_version: str = Field(default=WORKSPACE_API_VERSION, alias="apiVersion")
    metadata: ObjectMeta
    status: WorkspaceStatus = Field(default_factory=WorkspaceStatus)

    @property
    def name(self) -> str:
        return self.metadata.name


class WorkspaceList(BaseModelStrict):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: Literal["WorkspaceList"] = "WorkspaceList"
    api_version: str = Field(default=WORKSPACE_API_VERSION, alias="apiVersion")
    metadata: Dict[str, str] = Field(default_factory=dict)
    items: List[Workspace] = Field(default_factory=list)


SignupStatusReason = Literal["SignedUp", "NotSignedUp", "Unknown"]
SIGNED_UP: SignupStatusReason = "SignedUp"
NOT_SIGNED_UP: SignupStatusReason = "NotSignedUp"
UNKNOWN_SIGNUP_STATUS: SignupStatusReason = "Unknown"


class SignupStatus(BaseModelStrict):
    ready: bool
    reason: SignupStatusReason


class Signup(BaseModelStrict):
    status: SignupStatus

    @classmethod
    def signed_up(cls) -> "Signup":
        return cls(status=SignupStatus(ready=True, reason=SIGNED_UP))

    @classmethod
    def not_signed_up(cls) -> "Signup":
        return cls(status=SignupStatus(ready=False, reason=NOT_SIGNED_UP))
