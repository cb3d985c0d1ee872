from fastapi.testclient import TestClient


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["env"] == "development"
    assert "version" in data
    assert "timestamp" in data

def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "BioAffinity API"

def test_unknown_route_uses_error_shape(client: TestClient):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}

def test_malformed_json_is_a_validation_error(client: TestClient):
    response = client.post(
        "/api/auth/login",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    data = response.json()
    assert "error" in data
    assert data["errors"]

def test_tables_created_on_startup(app, client: TestClient):
    from sqlalchemy import inspect

    tables = inspect(app.state.database.engine).get_table_names()
    assert "users" in tables
    assert "audit_logs" in tables
