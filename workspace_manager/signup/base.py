from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from workspace_manager.core.models import Signup


class ProvisioningState(str, Enum):
    UNKNOWN = "Unknown"
    EXISTS = "Exists"
    ABSENT = "Absent"
    CREATING = "Creating"
    CREATED = "Created"
    FAILED = "Failed"


@dataclass(frozen=True)
class ProvisionResult:
    namespace: str
    state: ProvisioningState
    # False when the object was already there (an earlier or concurrent signup made it).
    namespace_created: bool = False
    binding_created: bool = False
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        if self.detail is not None:
            return self.detail
        return f"namespace creation request for {self.namespace} was completed successfully"


class SignupBackend(Protocol):
    """
    What the signup endpoints need.

    Implementations must be idempotent: clients retry POST until GET reports ready.
    """

    def check_signup(self, identity: str) -> Signup:
        """Return the caller's signup status. Raises StoreUnavailable on infrastructure errors."""

    def signup(self, identity: str, user_id: Optional[str] = None) -> ProvisionResult:
        """Provision the caller. Raises StoreUnavailable on infrastructure errors."""
