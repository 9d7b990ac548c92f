from __future__ import annotations

from typing import Optional

from workspace_manager.core.models import Signup
from workspace_manager.signup.base import ProvisioningState, ProvisionResult


class StaticSignupBackend:
    """Used when namespace provisioning is off: nothing is created, everyone is ready."""

    def check_signup(self, identity: str) -> Signup:
        return Signup.signed_up()

    def signup(self, identity: str, user_id: Optional[str] = None) -> ProvisionResult:
        return ProvisionResult(namespace="", state=ProvisioningState.EXISTS, detail="ok")
