from fastapi.testclient import TestClient


def test_login_success_returns_reduced_user(client: TestClient, create_user):
    user = create_user(username="lucia", password="s3creta", name="Lucía")

    resp = client.post("/api/login", json={"username": "lucia", "password": "s3creta"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["user"] == {
        "id": user["id"],
        "username": "lucia",
        "role": "user",
        "name": "Lucía",
    }


def test_login_wrong_password(client: TestClient, create_user):
    create_user(username="mario", password="correcta")

    resp = client.post("/api/login", json={"username": "mario", "password": "incorrecta"})
    assert resp.status_code == 401
    body = resp.json()
    assert body == {"success": False, "message": "Credenciales inválidas"}
    assert "user" not in body


def test_login_unknown_user(client: TestClient):
    resp = client.post("/api/login", json={"username": "fantasma", "password": "x"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_login_missing_fields(client: TestClient):
    resp = client.post("/api/login", json={"username": "solo"})
    assert resp.status_code == 400
