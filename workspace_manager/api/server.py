"""
Workspace manager HTTP API.

Routes:
- GET  /health
- GET  /api/v1/signup        signup status for the X-Email caller
- POST /api/v1/signup        provision the X-Email caller (X-User recorded as user id)
- GET  /workspaces           workspaces the caller can access
- GET  /workspaces/{ws}      a single accessible workspace

The caller identity is asserted by the fronting proxy via X-Email; this service does not
authenticate it.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from workspace_manager.access.aggregator import resolve_accessible_namespaces
from workspace_manager.access.workspaces import assemble_workspaces, find_workspace
from workspace_manager.authz.policy import load_workspace_policy
from workspace_manager.config import load_service_config
from workspace_manager.core.models import WorkspaceList
from workspace_manager.core.naming import require_identity
from workspace_manager.core.selectors import NamespaceSelector
from workspace_manager.errors import WorkspaceManagerError, WorkspaceNotFound
from workspace_manager.providers.k8s_provider import K8sProvider, get_k8s_provider
from workspace_manager.signup.base import SignupBackend
from workspace_manager.signup.provisioner import NamespaceProvisioner
from workspace_manager.signup.static import StaticSignupBackend

logger = logging.getLogger(__name__)

_provider: Optional[K8sProvider] = None
_signup_backend: Optional[SignupBackend] = None
_init_lock = threading.Lock()


def _get_provider() -> K8sProvider:
    global _provider
    if _provider is not None:
        return _provider
    with _init_lock:
        if _provider is None:
            _provider = get_k8s_provider()
        return _provider


def _get_signup_backend() -> SignupBackend:
    """NamespaceProvisioner when WM_NS_PROVISION is on, otherwise the static backend."""
    global _signup_backend
    if _signup_backend is not None:
        return _signup_backend
    cfg = load_service_config()
    backend: SignupBackend
    if cfg.ns_provision:
        logger.info("Automatic namespace provisioning is on")
        backend = NamespaceProvisioner(_get_provider(), admin_cluster_role=cfg.admin_cluster_role)
    else:
        backend = StaticSignupBackend()
    with _init_lock:
        if _signup_backend is None:
            _signup_backend = backend
        return _signup_backend


def _json(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=model.model_dump(mode="json", by_alias=True, exclude_none=True)
    )


app = FastAPI(title="Workspace Manager", redirect_slashes=False)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Strip trailing slashes and log every request."""
    start_time = time.time()
    path = request.scope.get("path") or ""
    if len(path) > 1 and path.endswith("/"):
        request.scope["path"] = path.rstrip("/") or "/"
    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise
    process_time = time.time() - start_time
    logger.info("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
    return response


@app.exception_handler(WorkspaceManagerError)
async def _workspace_manager_error(request: Request, exc: WorkspaceManagerError) -> JSONResponse:
    status = HTTPStatus(exc.status_code)
    if status >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=status.value, content={"message": status.phrase})


@app.get("/health")
def health() -> Response:
    return Response(status_code=200)


@app.get("/api/v1/signup")
async def get_signup(x_email: Optional[str] = Header(None)) -> JSONResponse:
    signup = await asyncio.to_thread(_get_signup_backend().check_signup, x_email or "")
    return _json(signup, status_code=200 if signup.status.ready else 404)


@app.post("/api/v1/signup")
async def post_signup(
    x_email: Optional[str] = Header(None), x_user: Optional[str] = Header(None)
) -> PlainTextResponse:
    result = await asyncio.to_thread(_get_signup_backend().signup, x_email or "", x_user)
    return PlainTextResponse(result.message)


async def _accessible_workspaces(identity: Optional[str], selector: NamespaceSelector) -> WorkspaceList:
    identity = require_identity(identity)
    k8s = _get_provider()
    cfg = load_service_config()
    candidates = await asyncio.to_thread(k8s.list_namespaces, selector)
    namespaces = await resolve_accessible_namespaces(
        identity,
        candidates,
        oracle=k8s,
        requirements=load_workspace_policy(),
        concurrency=cfg.access_check_concurrency,
    )
    return assemble_workspaces(namespaces)


@app.get("/workspaces")
async def list_workspaces(x_email: Optional[str] = Header(None)) -> JSONResponse:
    workspaces = await _accessible_workspaces(x_email, NamespaceSelector.all_tenants())
    return _json(workspaces)


@app.get("/workspaces/{ws}")
async def get_workspace(ws: str, x_email: Optional[str] = Header(None)) -> JSONResponse:
    try:
        selector = NamespaceSelector.named(ws)
    except ValueError as e:
        logger.info("Rejected workspace lookup: %s", e)
        raise WorkspaceNotFound(f"workspace {ws!r} not found") from e
    workspaces = await _accessible_workspaces(x_email, selector)
    return _json(find_workspace(workspaces, ws))


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    cfg = load_service_config()
    log_level = cfg.log_level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    bind_host = host or cfg.http_host
    bind_port = port or cfg.http_port
    logger.info("Starting workspace manager on %s:%d (log_level=%s)", bind_host, bind_port, log_level)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=uvicorn_log_level)
