"""
Access aggregation: which candidate namespaces can the caller fully operate in?

Each namespace is an AND over the policy requirements, checked in order, stopping at the
first denial or failed check. Namespaces are evaluated concurrently (bounded), but the
result keeps the input order. `resolve_accessible_namespaces` stops issuing checks at the
first failure; `evaluate_namespaces` always runs every candidate to completion.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from workspace_manager.authz.policy import load_workspace_policy
from workspace_manager.core.models import AccessDecision, CandidateNamespace, PolicyRequirement
from workspace_manager.core.naming import require_identity
from workspace_manager.errors import OracleUnavailable
from workspace_manager.providers.k8s_provider import K8sProvider

logger = logging.getLogger(__name__)


@dataclass
class AccessResolution:
    """Outcome of evaluating a batch of candidates for one identity."""

    namespaces: List[CandidateNamespace] = field(default_factory=list)
    decisions: List[AccessDecision] = field(default_factory=list)

    @property
    def errors(self) -> List[AccessDecision]:
        return [d for d in self.decisions if d.error is not None]

    @property
    def ok(self) -> bool:
        return not self.errors


async def check_namespace(
    identity: str,
    namespace: CandidateNamespace,
    *,
    oracle: K8sProvider,
    requirements: Sequence[PolicyRequirement],
    abort: Optional[asyncio.Event] = None,
) -> AccessDecision:
    for req in requirements:
        if abort is not None and abort.is_set():
            return AccessDecision(
                namespace=namespace.name, allowed=False, error="aborted after a failed check elsewhere"
            )
        try:
            allowed = await asyncio.to_thread(
                oracle.check_access,
                user=identity,
                namespace=namespace.name,
                group=req.group,
                resource=req.resource,
                verb=req.verb,
            )
        except Exception as e:
            logger.error("Access check failed for %s in %s (%s): %s", identity, namespace.name, req, e)
            return AccessDecision(namespace=namespace.name, allowed=False, denied_by=req, error=str(e))
        if not allowed:
            logger.debug("%s denied in %s: %s", identity, namespace.name, req)
            return AccessDecision(namespace=namespace.name, allowed=False, denied_by=req)
    return AccessDecision(namespace=namespace.name, allowed=True)


async def evaluate_namespaces(
    identity: str,
    candidates: Sequence[CandidateNamespace],
    *,
    oracle: K8sProvider,
    requirements: Optional[Sequence[PolicyRequirement]] = None,
    concurrency: int = 8,
) -> AccessResolution:
    """
    Evaluate every candidate and report decisions alongside the (possibly partial) result.

    A failed check excludes its namespace (fail closed) and is recorded on the decision;
    whether that aborts the request is the caller's call. See `resolve_accessible_namespaces`.
    """
    identity = require_identity(identity)
    reqs = tuple(requirements) if requirements is not None else load_workspace_policy()
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _guarded(ns: CandidateNamespace) -> AccessDecision:
        async with sem:
            return await check_namespace(identity, ns, oracle=oracle, requirements=reqs)

    decisions = list(await asyncio.gather(*(_guarded(ns) for ns in candidates)))
    allowed = [ns for ns, d in zip(candidates, decisions) if d.allowed]
    return AccessResolution(namespaces=allowed, decisions=decisions)


async def resolve_accessible_namespaces(
    identity: str,
    candidates: Sequence[CandidateNamespace],
    *,
    oracle: K8sProvider,
    requirements: Optional[Sequence[PolicyRequirement]] = None,
    concurrency: int = 8,
) -> List[CandidateNamespace]:
    """
    Return the candidates on which `identity` holds every required capability.

    Raises OracleUnavailable on the first failed check: a partial list would look like a
    legitimate (but wrong) answer, so the whole request is aborted instead. No new checks
    are issued once a failure is seen; queued namespaces are cancelled.
    """
    identity = require_identity(identity)
    reqs = tuple(requirements) if requirements is not None else load_workspace_policy()
    sem = asyncio.Semaphore(max(1, concurrency))
    abort = asyncio.Event()
    first_failure: List[OracleUnavailable] = []

    async def _guarded(ns: CandidateNamespace) -> AccessDecision:
        async with sem:
            decision = await check_namespace(identity, ns, oracle=oracle, requirements=reqs, abort=abort)
            if decision.error is not None:
                err = OracleUnavailable(f"access check failed in namespace {ns.name}: {decision.error}")
                # Set before the semaphore is released so waiting namespaces never start.
                if not abort.is_set():
                    abort.set()
                    first_failure.append(err)
                raise err
            return decision

    if not candidates:
        return []

    tasks = [asyncio.create_task(_guarded(ns)) for ns in candidates]
    _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    if first_failure:
        for task in tasks:
            if not task.cancelled():
                task.exception()  # mark retrieved
        raise first_failure[0]

    allowed = [ns for ns, t in zip(candidates, tasks) if t.result().allowed]
    logger.debug("%s can access %d of %d namespaces", identity, len(allowed), len(candidates))
    return allowed
