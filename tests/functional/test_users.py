from fastapi.testclient import TestClient

from app.db.models import User


def test_create_user_hides_password(client: TestClient, create_user, db_session):
    user = create_user(username="ana", password="clave-ana", name="Ana")

    assert user["username"] == "ana"
    assert user["role"] == "user"
    assert "password" not in user
    assert "hashedPassword" not in user

    row = db_session.get(User, user["id"])
    assert row.hashed_password != "clave-ana"


def test_create_user_duplicate_username(client: TestClient, create_user):
    create_user(username="repetido")

    resp = client.post(
        "/api/users",
        json={
            "username": "repetido",
            "password": "x",
            "name": "Otro",
            "email": "otro@example.com",
        },
    )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "El username o email ya existe."}


def test_create_user_duplicate_email(client: TestClient, create_user):
    create_user(username="uno", email="mismo@example.com")

    resp = client.post(
        "/api/users",
        json={
            "username": "dos",
            "password": "x",
            "name": "Dos",
            "email": "mismo@example.com",
        },
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "El username o email ya existe."


def test_create_user_invalid_body(client: TestClient):
    resp = client.post("/api/users", json={"username": "solo"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "password" in body["message"]


def test_list_users_only_role_user(client: TestClient, create_user):
    member = create_user(username="lector")
    admin = create_user(username="jefa", role="admin")

    resp = client.get("/api/users/list")
    assert resp.status_code == 200
    users = resp.json()["users"]

    ids = {u["id"] for u in users}
    assert member["id"] in ids
    assert admin["id"] not in ids

    # Proyección reducida
    listed = next(u for u in users if u["id"] == member["id"])
    assert set(listed) == {"id", "name", "username", "email"}


def test_get_user(client: TestClient, create_user):
    user = create_user(username="pepe")

    resp = client.get(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "pepe"

    resp = client.get("/api/users/no-existe")
    assert resp.status_code == 404


def test_update_user_role_and_password(client: TestClient, create_user):
    user = create_user(username="cambia", password="vieja")

    resp = client.put(f"/api/users/{user['id']}", json={"role": "admin", "password": "nueva"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["role"] == "admin"

    resp = client.post("/api/login", json={"username": "cambia", "password": "nueva"})
    assert resp.status_code == 200
    resp = client.post("/api/login", json={"username": "cambia", "password": "vieja"})
    assert resp.status_code == 401


def test_update_user_not_found(client: TestClient):
    resp = client.put("/api/users/no-existe", json={"name": "X"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Usuario no encontrado"


def test_update_user_duplicate_username(client: TestClient, create_user):
    create_user(username="ocupado")
    other = create_user(username="libre")

    resp = client.put(f"/api/users/{other['id']}", json={"username": "ocupado"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "El username o email ya existe."


def test_delete_user(client: TestClient, create_user):
    user = create_user()

    resp = client.delete(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Usuario eliminado"}

    resp = client.get(f"/api/users/{user['id']}")
    assert resp.status_code == 404


def test_delete_missing_user_reports_success(client: TestClient):
    resp = client.delete("/api/users/no-existe")
    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_other_roles_are_stored_but_not_listed(client: TestClient, create_user):
    member = create_user(username="socio")
    librarian = create_user(username="bibliotecaria", role="librarian")

    assert librarian["role"] == "librarian"

    resp = client.get(f"/api/users/{librarian['id']}")
    assert resp.json()["user"]["role"] == "librarian"

    ids = {u["id"] for u in client.get("/api/users/list").json()["users"]}
    assert member["id"] in ids
    assert librarian["id"] not in ids


def test_create_user_empty_role_rejected(client: TestClient):
    resp = client.post(
        "/api/users",
        json={"username": "sinrol", "password": "x", "name": "Sin Rol", "email": "sinrol@example.com", "role": ""},
    )
    assert resp.status_code == 400
    assert "role" in resp.json()["message"]
