import pytest
from fastapi.testclient import TestClient

from vclusterctl.api.main import app
from vclusterctl.api.routes.vclusters import get_runner_factory
from vclusterctl.config import Config

API_KEY = "test-key"

@pytest.fixture
def client(monkeypatch, fake_vcluster):
    monkeypatch.setattr(Config, "API_KEY", API_KEY)
    app.dependency_overrides[get_runner_factory] = lambda: (lambda meta: fake_vcluster)
    with TestClient(app) as c:
        c.headers.update({"X-API-Key": API_KEY})
        yield c
    app.dependency_overrides.clear()

def test_rejects_missing_api_key(client):
    response = client.get("/schema", headers={"X-API-Key": "wrong"})
    assert response.status_code == 403

def test_schema(client):
    response = client.get("/schema")
    assert response.status_code == 200
    assert response.json()["resources"]["vcluster_vcluster"]["name"]["force_new"] is True

def test_create_returns_record(client, fake_vcluster):
    response = client.post("/vcluster/create", json={"spec": {"name": "dev1", "expose": False}})

    assert response.status_code == 200
    body = response.json()
    assert body["exists"] is True
    assert body["state"]["id"] == "dev1"
    assert body["diagnostics"] == []
    assert fake_vcluster.calls == [["create", "dev1", "--connect=false", "--expose=false"]]

def test_create_failure_is_a_diagnostic(client, fake_vcluster):
    fake_vcluster.fail("create", b"fatal  boom")
    body = client.post("/vcluster/create", json={"spec": {"name": "dev1"}}).json()

    assert body["exists"] is False
    assert body["diagnostics"] == [{
        "severity": "error",
        "summary": "vcluster create dev1 --connect=false",
        "detail": "fatal  boom",
    }]

def test_create_invalid_spec(client):
    response = client.post("/vcluster/create", json={"spec": {"name": "dev1", "distro": "eks"}})
    assert response.status_code == 422

def test_read_found_and_gone(client, fake_vcluster):
    fake_vcluster.add("dev1")
    record = {"id": "dev1", "spec": {"name": "dev1"}}

    body = client.post("/vcluster/read", json={"state": record}).json()
    assert body["exists"] is True
    assert body["state"]["observed"] == {"status": "Running", "created": "2022-12-09T03:12:10+00:00"}

    fake_vcluster.clusters = []
    body = client.post("/vcluster/read", json={"state": body["state"]}).json()
    assert body["exists"] is False
    assert body["state"]["observed"]["status"] == "Running"

def test_update_is_inert(client, fake_vcluster):
    body = client.post("/vcluster/update", json={
        "state": {"id": "dev1", "spec": {"name": "dev1"}},
        "spec": {"name": "dev1", "namespace": "other"},
    }).json()

    assert fake_vcluster.calls == []
    assert body["state"]["spec"]["namespace"] == "other"
    assert body["diagnostics"][0]["severity"] == "warning"

def test_delete(client, fake_vcluster):
    fake_vcluster.add("dev1")
    body = client.post("/vcluster/delete", json={"state": {"id": "dev1", "spec": {"name": "dev1"}}}).json()

    assert body["diagnostics"] == []
    assert fake_vcluster.clusters == []

def test_invalid_provider_block(client):
    response = client.post("/vcluster/create", json={
        "spec": {"name": "dev1"},
        "kubernetes": {"config_path": "/a", "config_paths": ["/b"]},
    })
    assert response.status_code == 422
