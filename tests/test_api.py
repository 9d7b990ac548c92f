from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import workspace_manager.api.server as srv
from workspace_manager.signup.provisioner import NamespaceProvisioner
from workspace_manager.signup.static import StaticSignupBackend


@pytest.fixture
def client(fake_k8s, monkeypatch) -> TestClient:
    monkeypatch.setattr(srv, "_provider", fake_k8s)
    monkeypatch.setattr(srv, "_signup_backend", NamespaceProvisioner(fake_k8s))
    return TestClient(srv.app)


@pytest.fixture
def tenants(fake_k8s):
    for name in ("test-tenant", "test-tenant-2", "test-tenant-3"):
        fake_k8s.add_tenant(name)
    fake_k8s.add_tenant("kube-system", tenant=False)
    fake_k8s.grant("user1@konflux.dev", "test-tenant")
    fake_k8s.grant("user2@konflux.dev", "test-tenant")
    fake_k8s.grant("user2@konflux.dev", "test-tenant-2")
    fake_k8s.grant("user2@konflux.dev", "kube-system")
    return fake_k8s


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.content == b""


def test_workspaces_for_user1(client, tenants) -> None:
    r = client.get("/workspaces", headers={"X-Email": "user1@konflux.dev"})
    assert r.status_code == 200
    assert r.json() == {
        "kind": "WorkspaceList",
        "apiVersion": "toolchain.dev.openshift.com/v1alpha1",
        "metadata": {},
        "items": [
            {
                "kind": "Workspace",
                "apiVersion": "toolchain.dev.openshift.com/v1alpha1",
                "metadata": {"name": "test-tenant"},
                "status": {"namespaces": [{"name": "test-tenant", "type": "default"}]},
            }
        ],
    }


def test_workspaces_for_user2_never_include_non_tenant_namespaces(client, tenants) -> None:
    r = client.get("/workspaces", headers={"X-Email": "user2@konflux.dev"})
    assert r.status_code == 200
    assert [ws["metadata"]["name"] for ws in r.json()["items"]] == ["test-tenant", "test-tenant-2"]
    assert all(sel.startswith("konflux.ci/type in (user),") for sel in tenants.list_selectors)


def test_workspaces_for_user_without_access(client, tenants) -> None:
    r = client.get("/workspaces", headers={"X-Email": "user3@konflux.dev"})
    assert r.status_code == 200
    assert r.json()["items"] == []


def test_workspaces_without_identity_is_internal_error(client, tenants) -> None:
    r = client.get("/workspaces")
    assert r.status_code == 500
    assert r.json() == {"message": "Internal Server Error"}
    assert tenants.list_selectors == []


def test_workspaces_oracle_failure_is_internal_error(client, tenants) -> None:
    tenants.failing_checks.add(("test-tenant-2", "applications", "create"))
    r = client.get("/workspaces", headers={"X-Email": "user2@konflux.dev"})
    assert r.status_code == 500


def test_workspaces_directory_failure_is_internal_error(client, tenants) -> None:
    tenants.fail_list = True
    r = client.get("/workspaces", headers={"X-Email": "user2@konflux.dev"})
    assert r.status_code == 500


def test_single_workspace(client, tenants) -> None:
    r = client.get("/workspaces/test-tenant", headers={"X-Email": "user2@konflux.dev"})
    assert r.status_code == 200
    assert r.json()["metadata"] == {"name": "test-tenant"}
    assert tenants.list_selectors == [
        "konflux.ci/type in (user),kubernetes.io/metadata.name in (test-tenant)"
    ]


def test_single_workspace_without_access_is_not_found(client, tenants) -> None:
    r = client.get("/workspaces/test-tenant-2", headers={"X-Email": "user1@konflux.dev"})
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


@pytest.mark.parametrize("ws", ["a,b", "x)", "Test-Tenant"])
def test_invalid_workspace_name_is_not_found_without_listing(client, tenants, ws) -> None:
    r = client.get(f"/workspaces/{ws}", headers={"X-Email": "user2@konflux.dev"})
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}
    assert tenants.list_selectors == []
    assert tenants.access_checks == []


def test_trailing_slash_is_accepted(client, tenants) -> None:
    r = client.get("/workspaces/", headers={"X-Email": "user1@konflux.dev"})
    assert r.status_code == 200
    assert len(r.json()["items"]) == 1


def test_signup_flow(client, fake_k8s) -> None:
    headers = {"X-Email": "user@konflux.dev", "X-User": "uid-1"}

    r = client.get("/api/v1/signup", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"status": {"ready": False, "reason": "NotSignedUp"}}

    for _ in range(2):
        r = client.post("/api/v1/signup", headers=headers)
        assert r.status_code == 200
        assert r.text == "namespace creation request for user-konflux-dev-tenant was completed successfully"

    r = client.get("/api/v1/signup", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"status": {"ready": True, "reason": "SignedUp"}}
    assert list(fake_k8s.namespaces) == ["user-konflux-dev-tenant"]
    assert len(fake_k8s.role_bindings) == 1


def test_signup_store_error_is_internal_error(client, fake_k8s) -> None:
    fake_k8s.fail_get = True
    r = client.get("/api/v1/signup", headers={"X-Email": "user@konflux.dev"})
    assert r.status_code == 500


def test_signup_without_identity_is_internal_error(client) -> None:
    assert client.post("/api/v1/signup").status_code == 500


def test_static_signup_backend(fake_k8s, monkeypatch) -> None:
    monkeypatch.setattr(srv, "_provider", fake_k8s)
    monkeypatch.setattr(srv, "_signup_backend", StaticSignupBackend())
    c = TestClient(srv.app)

    r = c.get("/api/v1/signup")
    assert r.status_code == 200
    assert r.json() == {"status": {"ready": True, "reason": "SignedUp"}}

    r = c.post("/api/v1/signup")
    assert r.status_code == 200
    assert r.text == "ok"
    assert fake_k8s.namespaces == {}


def test_signup_backend_selected_from_env(fake_k8s, monkeypatch) -> None:
    monkeypatch.setattr(srv, "_provider", fake_k8s)
    monkeypatch.setattr(srv, "_signup_backend", None)
    monkeypatch.setenv("WM_NS_PROVISION", "true")
    assert isinstance(srv._get_signup_backend(), NamespaceProvisioner)

    monkeypatch.setattr(srv, "_signup_backend", None)
    monkeypatch.setenv("WM_NS_PROVISION", "false")
    srv.load_service_config.cache_clear()
    assert isinstance(srv._get_signup_backend(), StaticSignupBackend)
