#configuracion de los test
import sys
import uuid
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient

# ======================================================
# Ajuste del sys.path para que 'app/' sea importable
# ======================================================
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# ======================================================
# Imports de la aplicación
# ======================================================
from app.core.config import Settings
from app.main import create_app


# ======================================================
# APP / CLIENT FIXTURES (una base SQLite nueva por test)
# ======================================================
@pytest.fixture
def application(tmp_path):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'library_test.db'}")
    return create_app(settings)


@pytest.fixture
def client(application) -> Generator[TestClient, None, None]:
    """
    TestClient de FastAPI (con contexto: dispara startup y shutdown).
    """
    with TestClient(application) as c:
        yield c


@pytest.fixture
def db_session(application, client) -> Generator:
    """
    Sesión directa contra la misma base que usa el cliente.
    """
    session = application.state.database.session()
    try:
        yield session
    finally:
        session.close()


# ======================================================
# FACTORIES
# ======================================================
@pytest.fixture
def unique_isbn() -> Callable[[str], str]:
    #crea un ISBN unico y corto para los tests
    def _make(prefix: str = "ISBN") -> str:
        return f"{prefix}-{uuid.uuid4().hex[:8]}"

    return _make


@pytest.fixture
def create_user(client: TestClient) -> Callable[..., Dict]:
    def _create(username: str = None, password: str = "secret123", role: str = "user", **fields) -> Dict:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        payload = {
            "username": username,
            "password": password,
            "name": fields.pop("name", f"Nombre {username}"),
            "email": fields.pop("email", f"{username}@example.com"),
            "role": role,
        }
        payload.update(fields)
        resp = client.post("/api/users", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    return _create


@pytest.fixture
def create_book(client: TestClient, unique_isbn) -> Callable[..., Dict]:
    def _create(**fields) -> Dict:
        payload = {
            "title": "Libro de Pruebas",
            "author": "Autor Test",
            "isbn": unique_isbn("BOOK"),
            "category": "Test",
            "publishYear": 2024,
            "totalCopies": 3,
        }
        payload.update(fields)
        resp = client.post("/api/libros", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["book"]

    return _create


@pytest.fixture
def create_loan(client: TestClient) -> Callable[..., Dict]:
    def _create(book_id: str, user_id: str, due_date: str = "2099-01-15T00:00:00Z") -> Dict:
        resp = client.post(
            "/api/prestamos",
            json={"bookId": book_id, "userId": user_id, "dueDate": due_date},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["loan"]

    return _create
